"""Business logic services.

Services receive an AsyncSession and own the domain rules; routers stay thin.
"""
