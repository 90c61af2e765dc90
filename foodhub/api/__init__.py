# foodhub/api/__init__.py
