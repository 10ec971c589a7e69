"""utils 模块。"""
