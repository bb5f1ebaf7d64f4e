"""面向展示层（UI）的调用入口。"""
