"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from budget_backend.app.api.v1.endpoints import (
    auth, accounts, balances, categories,
    statements, transactions, recurring, views,
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Accounts and their balances
router.include_router(accounts.router)
router.include_router(balances.router)

# Ledger
router.include_router(categories.router)
router.include_router(transactions.router)
router.include_router(recurring.router)
router.include_router(statements.router)

# Read-only views
router.include_router(views.router)
