"""Pytest configuration and shared fixtures for server build tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from serverbuild.application.factory import ServiceFactory, reset_factory
from serverbuild.application.service import ConfigurationService
from serverbuild.application.validation.context import ValidationContext
from serverbuild.infrastructure.catalog import InMemoryCatalog


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: tests that take a long time to run")


# =============================================================================
# Catalog shared by service, CLI and API tests
# =============================================================================

MOTHERBOARD_X13 = {
    "model": "Supermicro X13DEI",
    "socket": "LGA4677",
    "socket_count": 2,
    "form_factor": "EATX",
    "ram_slots": 16,
    "memory_types": ["DDR5"],
    "max_memory_speed": 4800,
    "ecc_support": True,
    "pcie_generation": 5,
    "m2_slots": 2,
    "m2_pcie_generation": 4,
    "sata_ports": 8,
    "vrm_phases": 16,
    "expansion_slots": {
        "pcie_slots": [
            {"type": "PCIe 5.0 x16", "count": 2},
            {"type": "PCIe 5.0 x8", "count": 2},
        ],
        "riser_slots": [{"type": "PCIe 5.0 x16", "count": 2}],
    },
}

CATALOG: dict[str, dict[str, dict[str, Any]]] = {
    "motherboard": {
        "mb-x13": MOTHERBOARD_X13,
        "mb-small": {
            "model": "ASRock Rack B650D4U",
            "socket": "AM5",
            "form_factor": "ATX",
            "ram_slots": 4,
            "memory_types": ["DDR5"],
            "pcie_slots": 1,
            "m2_slots": 1,
            "sata_ports": 2,
            "vrm_phases": 8,
        },
        "mb-legacy": {
            "model": "Legacy Board",
            "socket": "LGA4677",
            "form_factor": "ATX",
            "ram_slots": 8,
            "pcie_slots": 3,
            "expansion_slots": {"riser_compatibility": {"max_risers": 1}},
        },
    },
    "cpu": {
        "cpu-xeon": {
            "model": "Xeon Gold 6430",
            "socket": "LGA4677",
            "cores": 32,
            "threads": 64,
            "tdp_watts": 185,
            "memory_types": ["DDR5"],
            "max_memory_speed": 4800,
        },
        "cpu-xeon-2": {
            "model": "Xeon Gold 6430",
            "socket": "LGA4677",
            "cores": 32,
            "tdp_watts": 185,
            "memory_types": ["DDR5"],
        },
        "cpu-xeon-3": {
            "model": "Xeon Gold 6430",
            "socket": "LGA4677",
            "cores": 32,
            "tdp_watts": 185,
        },
        "cpu-epyc": {
            "model": "EPYC 9354",
            "socket": "SP5",
            "cores": 32,
            "tdp_watts": 280,
            "memory_types": ["DDR5"],
        },
    },
    "ram": {
        "ram-1": {
            "model": "Samsung 32GB DDR5 ECC RDIMM",
            "capacity_gb": 32,
            "type": "DDR5",
            "form_factor": "DIMM",
            "speed_mhz": 4800,
            "module_type": "RDIMM",
            "ecc": True,
        },
        "ram-2": {
            "model": "Samsung 32GB DDR5 ECC RDIMM",
            "capacity_gb": 32,
            "type": "DDR5",
            "form_factor": "DIMM",
            "speed_mhz": 4800,
            "module_type": "RDIMM",
            "ecc": True,
        },
        "ram-udimm": {
            "model": "Kingston 32GB DDR5 UDIMM",
            "capacity_gb": 32,
            "type": "DDR5",
            "form_factor": "DIMM",
            "module_type": "UDIMM",
        },
        "ram-ddr4": {
            "model": "Micron 32GB DDR4 RDIMM",
            "capacity_gb": 32,
            "type": "DDR4",
            "form_factor": "DIMM",
            "module_type": "RDIMM",
        },
    },
    "storage": {
        "nvme-1": {
            "model": "Samsung PM9A3",
            "capacity_gb": 1920,
            "interface": "NVMe",
            "form_factor": "M.2",
            "speed_mbps": 5000,
            "pcie_generation": 4,
        },
        "nvme-2": {
            "model": "Samsung PM9A3",
            "capacity_gb": 1920,
            "interface": "NVMe",
            "form_factor": "M.2",
        },
        "nvme-3": {
            "model": "Samsung PM9A3",
            "capacity_gb": 1920,
            "interface": "NVMe",
            "form_factor": "M.2",
        },
        "sata-1": {
            "model": "Micron 5400 Pro",
            "capacity_gb": 3840,
            "interface": "SATA",
            "form_factor": '2.5"',
        },
        "sata-2": {
            "model": "Micron 5400 Pro",
            "capacity_gb": 3840,
            "interface": "SATA",
            "form_factor": '2.5"',
        },
        "sata-3": {
            "model": "Micron 5400 Pro",
            "capacity_gb": 3840,
            "interface": "SATA",
            "form_factor": '2.5"',
        },
        "sata-35": {
            "model": "Seagate Exos 7E10",
            "capacity_gb": 8000,
            "interface": "SATA",
            "form_factor": '3.5"',
        },
        "sas-1": {
            "model": "Seagate Exos 10E2400",
            "capacity_gb": 2400,
            "interface": "SAS",
            "form_factor": '2.5"',
        },
    },
    "chassis": {
        "ch-rack": {
            "model": "Supermicro CSE-829U",
            "form_factor": "Rack",
            "supported_form_factors": ["EATX", "ATX"],
            "drive_bays": 8,
            "bays_2_5": 8,
            "m2_bays": 2,
            "pcie_slots": 7,
            "rack_units": 2,
            "fans": 4,
            "max_airflow_cfm": 300,
            "backplane_type": "Hybrid",
            "hot_swap_capable": True,
            "supported_psu_form_factors": ["CRPS"],
            "rail_compatible": True,
        },
        "ch-35": {
            "model": "Storage Tower",
            "form_factor": "Tower",
            "supported_form_factors": ["ATX"],
            "drive_bays": 4,
            "bays_3_5": 4,
            "fans": 2,
            "supported_psu_form_factors": ["ATX"],
        },
    },
    "psu": {
        "psu-crps": {"model": "Supermicro 1200W", "wattage": 1200, "form_factor": "CRPS"},
        "psu-atx": {"model": "Seasonic 850W", "wattage": 850, "form_factor": "ATX"},
    },
    "nic": {
        "nic-sfp28": {
            "model": "Intel E810-XXVDA2",
            "speed_gbps": 25,
            "port_count": 2,
            "port_type": "SFP28",
            "interface": "PCIe 4.0 x8",
            "pcie_lanes": 8,
        },
        "nic-qsfp28": {
            "model": "Mellanox ConnectX-6",
            "speed_gbps": 100,
            "port_count": 1,
            "port_type": "QSFP28",
            "interface": "PCIe 4.0 x16",
            "pcie_lanes": 16,
        },
        "nic-rj45": {
            "model": "Intel X710-T2L",
            "speed_gbps": 10,
            "port_count": 2,
            "port_type": "RJ45",
            "interface": "PCIe 3.0 x8",
            "pcie_lanes": 8,
        },
    },
    "sfp": {
        "sfp28-1": {
            "model": "Intel E25GSFP28SR",
            "type": "SFP28",
            "speed": "25Gbps",
            "fiber_type": "Multi-mode",
            "reach": "100m",
        },
        "sfp28-2": {
            "model": "Intel E25GSFP28SR",
            "type": "SFP28",
            "speed": "25Gbps",
            "fiber_type": "Multi-mode",
            "reach": "100m",
        },
        "sfp28-3": {
            "model": "Intel E25GSFP28SR",
            "type": "SFP28",
            "speed": "25Gbps",
            "fiber_type": "Multi-mode",
            "reach": "100m",
        },
        "sfp-plus-1": {
            "model": "Intel E10GSFPSR",
            "type": "SFP+",
            "speed": "10Gbps",
            "fiber_type": "Multi-mode",
        },
        "qsfp28-1": {
            "model": "Mellanox MMA1B00",
            "type": "QSFP28",
            "speed": "100Gbps",
            "fiber_type": "Single-mode",
        },
    },
    "hbacard": {
        "hba-sas": {
            "model": "Broadcom 9500-8i",
            "protocol": "SAS",
            "port_count": 8,
            "interface": "PCIe 4.0 x8",
            "sas_generation": "SAS3",
            "cache_memory_mb": 0,
        },
        "hba-sata": {
            "model": "SATA Expander",
            "protocol": "SATA",
            "port_count": 4,
            "interface": "PCIe 3.0 x4",
        },
    },
    "pciecard": {
        "gpu-1": {"model": "NVIDIA L4", "interface": "PCIe 4.0 x16", "pcie_slots": 1},
        "gpu-2": {"model": "NVIDIA L4", "interface": "PCIe 4.0 x16", "pcie_slots": 1},
        "gpu-3": {"model": "NVIDIA L4", "interface": "PCIe 4.0 x16", "pcie_slots": 1},
        "card-x4": {"model": "Optane Adapter", "interface": "PCIe 3.0 x4"},
        "rc-a": {
            "model": "2-slot riser",
            "component_subtype": "Riser Card",
            "interface": "PCIe x16",
            "slot_type": "PCIe x16",
            "pcie_slots": 2,
        },
        "rc-b": {
            "model": "2-slot riser",
            "component_subtype": "Riser Card",
            "interface": "PCIe x16",
            "slot_type": "PCIe x16",
            "pcie_slots": 2,
        },
        "rc-c": {
            "model": "2-slot riser",
            "component_subtype": "Riser Card",
            "interface": "PCIe x16",
            "slot_type": "PCIe x16",
            "pcie_slots": 2,
        },
        "riser-legacy": {"model": "Old riser", "interface": "PCIe x16", "pcie_slots": 1},
    },
    "caddy": {
        "caddy-25": {
            "model": "2.5in tray",
            "form_factor": '2.5"',
            "material": "Steel",
            "mounting_type": "Bay",
        },
        "caddy-35": {
            "model": "3.5in tray",
            "form_factor": '3.5"',
            "material": "Steel",
            "mounting_type": "Bay",
        },
    },
}

# Components of a build that passes every validator without warnings, in add order
CLEAN_BUILD: list[tuple[str, str]] = [
    ("chassis", "ch-rack"),
    ("motherboard", "mb-x13"),
    ("cpu", "cpu-xeon"),
    ("ram", "ram-1"),
    ("ram", "ram-2"),
    ("psu", "psu-crps"),
    ("storage", "nvme-1"),
    ("storage", "sata-1"),
    ("caddy", "caddy-25"),
    ("nic", "nic-sfp28"),
    ("sfp", "sfp28-1"),
]


def spec_of(component_type: str, uuid: str) -> dict[str, Any]:
    """Copy of one catalog entry."""
    return copy.deepcopy(CATALOG[component_type][uuid])


def context_of(*entries: tuple[str, str | dict[str, Any]]) -> ValidationContext:
    """Validation context from (type, catalog uuid) or (type, raw spec) pairs."""
    context = ValidationContext()
    for component_type, entry in entries:
        data = spec_of(component_type, entry) if isinstance(entry, str) else entry
        context.add_component(component_type, context.count_components(component_type), data)
    return context


@pytest.fixture(autouse=True)
def clean_default_factory():
    """Reset the process-wide service factory around each test."""
    reset_factory()
    yield
    reset_factory()


@pytest.fixture
def catalog_data() -> dict[str, dict[str, dict[str, Any]]]:
    """Deep copy of the shared catalog."""
    return copy.deepcopy(CATALOG)


@pytest.fixture
def catalog(catalog_data: dict[str, dict[str, dict[str, Any]]]) -> InMemoryCatalog:
    return InMemoryCatalog(catalog_data)


@pytest.fixture
def factory(catalog: InMemoryCatalog) -> ServiceFactory:
    """ServiceFactory wired to the shared catalog."""
    return ServiceFactory(catalog=catalog)


@pytest.fixture
def service(factory: ServiceFactory) -> ConfigurationService:
    return factory.get_configuration_service()


@pytest.fixture
def config_id(service: ConfigurationService) -> str:
    """Id of a fresh, empty configuration."""
    return service.create_configuration(name="test-build").config_id


@pytest.fixture
def build_dict(catalog_data: dict[str, dict[str, dict[str, Any]]]) -> dict[str, Any]:
    """Build file data for the clean build."""
    return {
        "schema_version": "1.0",
        "name": "clean-build",
        "catalog": catalog_data,
        "components": [{"type": ctype, "uuid": uuid} for ctype, uuid in CLEAN_BUILD],
    }
