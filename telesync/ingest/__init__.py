"""ingest 模块。"""
