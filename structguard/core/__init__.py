# structguard/core/__init__.py
"""核心子包：签名、消息、适配器、JSON 提取/修复与流式过滤"""
