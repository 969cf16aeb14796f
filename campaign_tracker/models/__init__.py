"""Domain models for the campaign tracker.

This package contains the parsed upload rows, the persisted records of each
table and the result structures of an import run.
"""

from .amazon import AmazonProduct, AmazonRevenue
from .campaign import Campaign, CampaignProduct
from .error_record import FILE_LEVEL_ROW, ErrorRecord
from .import_row import ImportRow
from .monthly_order import MonthlyOrder, UploadContext, parse_month
from .payment_method import PAYMENT_METHODS, PaymentMethod
from .processing_result import FileStat, ProcessingResult
from .product_cost import ProductCost

__all__ = [
    # Upload models
    "ImportRow",
    "MonthlyOrder",
    "UploadContext",
    "parse_month",
    # Dashboard records
    "AmazonProduct",
    "AmazonRevenue",
    "Campaign",
    "CampaignProduct",
    "PAYMENT_METHODS",
    "PaymentMethod",
    "ProductCost",
    # Processing models
    "ErrorRecord",
    "FILE_LEVEL_ROW",
    "FileStat",
    "ProcessingResult",
]
