"""config 模块。"""
