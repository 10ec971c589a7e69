"""cli 模块。"""
