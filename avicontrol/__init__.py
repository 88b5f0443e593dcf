"""AviControl - control de pesaje y cobranza para venta de pollo por lotes"""

__version__ = "1.0.0"
