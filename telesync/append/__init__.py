"""append 模块。"""
