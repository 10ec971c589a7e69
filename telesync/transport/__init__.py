"""transport 模块。"""
