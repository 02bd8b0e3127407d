from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import current_app

from ..repositories import Repositories
from .auth_service import AuthService
from .catalog_service import CatalogService
from .order_service import TRANSITION_POLICIES, OrderService
from .reporting_service import ReportingService
from .token_service import TokenService

EXTENSION_KEY = "pharmacy"


@dataclass
class Services:
    repos: Repositories
    auth: AuthService
    tokens: TokenService
    catalog: CatalogService
    orders: OrderService
    reports: ReportingService


def build_services(config, repos: Repositories, logger: logging.Logger | None = None) -> Services:
    """Wire every service around one repository bundle from a config mapping."""
    policy_name = config.get("ORDER_TRANSITION_POLICY", "open")
    if policy_name not in TRANSITION_POLICIES:
        raise ValueError(f"Unknown ORDER_TRANSITION_POLICY: {policy_name!r}")

    return Services(
        repos=repos,
        auth=AuthService(repos, bcrypt_rounds=config.get("BCRYPT_ROUNDS", 12), logger=logger),
        tokens=TokenService(
            repos.users,
            access_secret=config["JWT_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_ttl=config["JWT_EXPIRES_IN"],
            refresh_ttl=config["JWT_REFRESH_EXPIRES_IN"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            logger=logger,
        ),
        catalog=CatalogService(repos),
        orders=OrderService(repos, transition_policy=TRANSITION_POLICIES[policy_name], logger=logger),
        reports=ReportingService(
            repos,
            low_stock_threshold=config.get("LOW_STOCK_THRESHOLD", 50),
            top_limit=config.get("TOP_PRODUCTS_LIMIT", 10),
        ),
    )


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
