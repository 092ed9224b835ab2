"""
Gang Sheets - DTF gang sheet packing and pricing

Packs repeated copies of PDF/PNG logos into fixed-width sheets, trims each
sheet to the rows it uses and prices it from a height tier table.
"""

__version__ = "1.0.0"
