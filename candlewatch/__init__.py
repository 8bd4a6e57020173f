"""
CandleWatch - Candlestick Pattern & RSI Signal Engine
======================================================
Agrega velas OHLC en una serie acotada, detecta patrones de velas
japonesas, calcula RSI y produce una señal consultiva (BUY / SELL / HOLD).
"""

__version__ = "0.1.0"
