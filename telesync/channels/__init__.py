"""channels 模块。"""
