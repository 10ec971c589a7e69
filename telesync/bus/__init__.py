"""bus 模块。"""
