"""Validators subpackage - rule sets for server configurations.

Validators are grouped by the hardware they look at:
- platform: socket, form factor, CPU, motherboard and RAM
- storage: drives, backplane, onboard ports, HBA requirement, adapters, bays
- chassis: enclosure capabilities, physical fit and caddies
- expansion: PCIe slot budget, NICs and HBAs
- slots: the final utilization report
"""

from .chassis import CaddyValidator, ChassisValidator, FormFactorLockValidator
from .expansion import HBAValidator, NICValidator, PCIeCardValidator, is_riser_card
from .platform import (
    CPUValidator,
    FormFactorValidator,
    MotherboardValidator,
    RAMValidator,
    SocketCompatibilityValidator,
)
from .slots import SlotAvailabilityValidator, SlotUsage
from .storage import (
    ChassisBackplaneValidator,
    HBARequirementValidator,
    MotherboardStorageValidator,
    NVMeSlotValidator,
    PCIeAdapterValidator,
    StorageBayValidator,
    StorageValidator,
)

# Declaration order; ties in priority keep this order
DEFAULT_VALIDATORS = (
    SocketCompatibilityValidator,
    FormFactorValidator,
    CPUValidator,
    MotherboardValidator,
    RAMValidator,
    StorageValidator,
    PCIeCardValidator,
    ChassisBackplaneValidator,
    MotherboardStorageValidator,
    HBARequirementValidator,
    PCIeAdapterValidator,
    StorageBayValidator,
    FormFactorLockValidator,
    NVMeSlotValidator,
    ChassisValidator,
    NICValidator,
    HBAValidator,
    CaddyValidator,
    SlotAvailabilityValidator,
)

__all__ = [
    "DEFAULT_VALIDATORS",
    # Platform
    "SocketCompatibilityValidator",
    "FormFactorValidator",
    "CPUValidator",
    "MotherboardValidator",
    "RAMValidator",
    # Storage
    "StorageValidator",
    "ChassisBackplaneValidator",
    "MotherboardStorageValidator",
    "HBARequirementValidator",
    "PCIeAdapterValidator",
    "StorageBayValidator",
    "NVMeSlotValidator",
    # Chassis
    "ChassisValidator",
    "FormFactorLockValidator",
    "CaddyValidator",
    # Expansion
    "PCIeCardValidator",
    "NICValidator",
    "HBAValidator",
    "is_riser_card",
    # Slots
    "SlotAvailabilityValidator",
    "SlotUsage",
]
