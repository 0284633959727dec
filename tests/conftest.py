"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from bridgecd.core.models import DeliveryConfiguration

SAMPLE_DELIVERY_YML = textwrap.dedent("""\
    domains:
      - name: local
      - name: prod

    nodes:
      - name: local-1
        domain: local
        host: localhost
        user: admin
        password: secret
        labels: [primary]
      - name: prod-1
        domain: prod
        host: bridge1.example.com
        user: admin
        password: secret
        labels: [primary]
      - name: prod-2
        domain: prod
        host: bridge2.example.com
        port: 11186
        user: admin
        password: secret
        labels: [backup]

    solutions:
      - name: Collector
      - name: Portal

    services:
      - name: CollectorService
        solution: Collector
        type: xUML
        repository: CollectorService.rep
        settings:
          configFile:
            - value: default
              domain: local
            - value: other
              domain: [local]
          logLevel: info
        preferences:
          automaticStartup: true
        deployment_options:
          overwrite: true
      - name: PortalService
        solution: Portal
        type: node
        repository: PortalService.zip
        settings:
          port:
            - value: 3000
            - value: 3001
              node: prod-2
        deployment_options:
          npm_install: true
""")


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A delivery project with delivery.yml and its repositories."""
    (tmp_path / "delivery.yml").write_text(SAMPLE_DELIVERY_YML)
    repositories = tmp_path / "repositories"
    repositories.mkdir()
    (repositories / "CollectorService.rep").write_bytes(b"rep")
    (repositories / "PortalService.zip").write_bytes(b"zip")
    return tmp_path


@pytest.fixture
def configuration() -> DeliveryConfiguration:
    """Configuration with two nodes in one domain and three services."""
    return DeliveryConfiguration.model_validate({
        "domains": ["test", "prod"],
        "nodes": [
            {"name": "t1", "domain": "test", "user": "u", "password": "p", "labels": ["a"]},
            {"name": "t2", "domain": "test", "user": "u", "password": "p", "labels": ["b"]},
            {"name": "p1", "domain": "prod", "user": "u", "password": "p"},
        ],
        "solutions": ["Shop", "Billing"],
        "services": [
            {
                "name": "Cart",
                "solution": "Shop",
                "type": "xUML",
                "repository": "Cart.rep",
                "settings": {"timeout": 30},
                "preferences": {"automaticStartup": True},
            },
            {
                "name": "Catalog",
                "solution": "Shop",
                "type": "node",
                "repository": "Catalog.zip",
            },
            {
                "name": "Invoices",
                "solution": "Billing",
                "type": "java",
                "repository": "Invoices.jar",
                "settings": {
                    "db": [
                        {"value": "test-db", "domain": "test"},
                        {"value": "prod-db", "domain": "prod"},
                    ],
                },
            },
        ],
    })
