"""
Mineral: touch screen drink kiosk

Order orchestration for scanning a member tag and dropping a drink.
"""

__version__ = '0.1.0'
