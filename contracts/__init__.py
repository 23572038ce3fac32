"""Contracts and canonical schema.

The contracts package defines:
- the table layout of both demo databases (columns, vector columns, FDW mirrors)
- the frozen record types the data generator produces and the loaders insert

Main exports:
- TableSpec, ColumnSpec, ForeignTableMirror, TABLES, FOREIGN_TABLE_MIRRORS
- Customer, CustomerFeedback, CustomerBehavior, Merchant, Transaction, FraudPattern, Dataset
"""

from contracts import records
from contracts import schema

# Explicit re-exports to satisfy ruff F401
__all__ = [
    "ColumnSpec",
    "Customer",
    "CustomerBehavior",
    "CustomerFeedback",
    "Dataset",
    "EMBEDDING_DIM",
    "FOREIGN_TABLE_MIRRORS",
    "ForeignTableMirror",
    "FraudPattern",
    "Merchant",
    "TABLES",
    "TableSpec",
    "Transaction",
]

EMBEDDING_DIM = schema.EMBEDDING_DIM
ColumnSpec = schema.ColumnSpec
TableSpec = schema.TableSpec
ForeignTableMirror = schema.ForeignTableMirror
TABLES = schema.TABLES
FOREIGN_TABLE_MIRRORS = schema.FOREIGN_TABLE_MIRRORS

Customer = records.Customer
CustomerFeedback = records.CustomerFeedback
CustomerBehavior = records.CustomerBehavior
Merchant = records.Merchant
Transaction = records.Transaction
FraudPattern = records.FraudPattern
Dataset = records.Dataset
