# backend/stock_api/stocks/__init__.py
