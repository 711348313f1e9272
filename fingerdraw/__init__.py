"""
FingerDraw - 双手手势隔空绘制
"""

__version__ = "0.1.0"
