"""store 模块。"""
