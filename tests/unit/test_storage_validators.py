"""Unit tests for the storage validators."""

import pytest

from serverbuild.application.validation.validators import (
    ChassisBackplaneValidator,
    HBARequirementValidator,
    MotherboardStorageValidator,
    NVMeSlotValidator,
    PCIeAdapterValidator,
    StorageBayValidator,
    StorageValidator,
)
from serverbuild.domain.specs import MotherboardSpec, StorageSpec

from conftest import context_of

U2_DRIVE = {"model": "Micron 7450", "capacity_gb": 3840, "interface": "U.2", "form_factor": '2.5"'}
SATA_M2 = {"model": "WD Blue", "capacity_gb": 500, "interface": "SATA", "form_factor": "M.2 2280"}
PLAIN_BOARD = {"model": "Board", "socket": "AM5", "form_factor": "ATX"}


def messages(entries) -> list[str]:
    return [entry.message for entry in entries]


class TestStorageValidator:
    """Tests for StorageValidator."""

    def test_clean_layout(self) -> None:
        context = context_of(
            ("motherboard", "mb-x13"), ("storage", "nvme-1"), ("storage", "sata-1")
        )

        result = StorageValidator().validate(context)

        assert result.success
        assert not result.has_warnings
        assert messages(result.infos) == [
            "Storage summary: 1 NVMe, 1 SATA, 0 SAS drives - Total: 5760GB"
        ]

    def test_missing_fields(self) -> None:
        result = StorageValidator().validate(context_of(("storage", {"model": "Bare"})))

        errors = messages(result.errors)
        assert "Storage device 0: field 'capacity_gb' is required but missing" in errors
        assert "Storage device 0: field 'interface' is required but missing" in errors
        assert "Storage device 0: field 'form_factor' is required but missing" in errors
        assert "Storage device 0: capacity must be greater than 0 GB" in errors

    def test_nvme_requires_m2(self) -> None:
        drive = {"capacity_gb": 960, "interface": "NVMe", "form_factor": '2.5"'}
        result = StorageValidator().validate(context_of(("storage", drive)))
        assert messages(result.errors) == [
            "Storage device 0: NVMe interface requires M.2 form factor"
        ]

    def test_sata_in_m2_form_factor(self) -> None:
        result = StorageValidator().validate(context_of(("storage", SATA_M2)))
        assert messages(result.warnings) == [
            "Storage device 0: SATA interface with M.2 form factor is unusual"
        ]

    def test_unknown_interface(self) -> None:
        drive = {"capacity_gb": 960, "interface": "FC", "form_factor": '3.5"'}
        result = StorageValidator().validate(context_of(("storage", drive)))
        assert messages(result.warnings) == ["Storage device 0: unknown interface 'FC'"]

    def test_too_many_nvme_is_blocking(self) -> None:
        context = context_of(
            ("motherboard", "mb-small"), ("storage", "nvme-1"), ("storage", "nvme-2")
        )

        result = StorageValidator().validate(context)

        assert result.is_blocking
        assert result.errors[0].code == "m2_capacity"
        assert result.errors[0].message == "More NVMe drives (2) than motherboard M.2 slots (1)"

    def test_sata_port_shortfall_is_advisory(self) -> None:
        context = context_of(
            ("motherboard", "mb-small"),
            ("storage", "sata-1"),
            ("storage", "sata-2"),
            ("storage", "sata-3"),
        )

        result = StorageValidator().validate(context)

        assert result.success
        assert messages(result.warnings) == [
            "More SATA drives (3) than motherboard SATA ports (2) - may need adapter"
        ]

    def test_sas_without_hba_is_blocking(self) -> None:
        result = StorageValidator().validate(context_of(("storage", "sas-1")))

        assert result.is_blocking
        assert result.errors[0].code == "hba_required"

    def test_sas_with_hba(self) -> None:
        result = StorageValidator().validate(
            context_of(("storage", "sas-1"), ("hbacard", "hba-sas"))
        )
        assert result.success

    def test_very_large_capacity(self) -> None:
        result = StorageValidator().validate(context_of(*[("storage", "sata-35")] * 13))
        assert messages(result.warnings) == [
            "Very large total storage capacity: 104000GB - ensure proper cooling and power"
        ]


class TestChassisBackplaneValidator:
    """Tests for ChassisBackplaneValidator."""

    def test_hybrid_backplane(self) -> None:
        context = context_of(("chassis", "ch-rack"), ("storage", "nvme-1"), ("storage", "sata-1"))

        result = ChassisBackplaneValidator().validate(context)

        assert result.success
        assert messages(result.infos) == [
            "Chassis backplane 'HYBRID' supports: SATA, SAS, NVME",
            "Chassis supports hot-swap - drives can be replaced without powering down",
        ]

    def test_unspecified_backplane(self) -> None:
        context = context_of(("chassis", "ch-35"), ("storage", "sata-35"))
        result = ChassisBackplaneValidator().validate(context)
        assert messages(result.warnings) == [
            "Chassis backplane type not specified - cannot validate storage compatibility"
        ]

    def test_unsupported_interface(self) -> None:
        context = context_of(
            ("chassis", {"model": "Cheap", "backplane_type": "SATA"}),
            ("storage", "nvme-1"),
        )
        result = ChassisBackplaneValidator().validate(context)
        assert messages(result.errors) == [
            "Chassis backplane type 'SATA' does not support NVME storage"
        ]

    def test_enterprise_storage_needs_hot_swap(self) -> None:
        context = context_of(
            ("chassis", {"model": "Cold", "backplane_type": "SAS"}),
            ("storage", "sas-1"),
        )
        result = ChassisBackplaneValidator().validate(context)
        assert messages(result.warnings) == [
            "Configuration includes enterprise storage but chassis does not support hot-swap"
        ]

    def test_can_run(self) -> None:
        validator = ChassisBackplaneValidator()
        assert not validator.can_run(context_of(("chassis", "ch-rack")))
        assert validator.can_run(context_of(("chassis", "ch-rack"), ("hbacard", "hba-sas")))

    def test_hba_only_reports_nothing(self) -> None:
        context = context_of(("chassis", "ch-rack"), ("hbacard", "hba-sas"))
        result = ChassisBackplaneValidator().validate(context)
        assert result.to_dict()["counts"] == {"errors": 0, "warnings": 0, "infos": 0}


class TestMotherboardStorageValidator:
    """Tests for MotherboardStorageValidator."""

    def test_no_sata_ports(self) -> None:
        context = context_of(("motherboard", PLAIN_BOARD), ("storage", "sata-1"))
        result = MotherboardStorageValidator().validate(context)
        assert messages(result.errors) == [
            "Configuration includes SATA drives but motherboard has no SATA ports"
        ]

    def test_too_few_sata_ports(self) -> None:
        context = context_of(
            ("motherboard", "mb-small"),
            ("storage", "sata-1"),
            ("storage", "sata-2"),
            ("storage", "sata-3"),
        )
        result = MotherboardStorageValidator().validate(context)
        assert messages(result.errors) == [
            "Configuration needs 3 SATA ports but motherboard only has 2"
        ]

    def test_no_m2_slots(self) -> None:
        context = context_of(("motherboard", "mb-legacy"), ("storage", "nvme-1"))
        result = MotherboardStorageValidator().validate(context)
        assert messages(result.errors) == [
            "Configuration includes NVMe drives but motherboard has no M.2 slots"
        ]

    def test_too_few_m2_slots(self) -> None:
        context = context_of(
            ("motherboard", "mb-small"), ("storage", "nvme-1"), ("storage", "nvme-2")
        )
        result = MotherboardStorageValidator().validate(context)
        assert messages(result.errors) == [
            "Configuration needs 2 M.2 slots but motherboard only has 1"
        ]

    def test_u2_without_ports(self) -> None:
        context = context_of(("motherboard", "mb-x13"), ("storage", U2_DRIVE))
        result = MotherboardStorageValidator().validate(context)
        assert result.success
        assert messages(result.warnings) == [
            "Configuration includes U.2 drives but motherboard has no U.2 ports"
        ]

    def test_sata_only_m2_slots(self) -> None:
        board = {**PLAIN_BOARD, "m2_slots": 2, "m2_slot_type": "SATA"}
        context = context_of(("motherboard", board), ("storage", "nvme-1"))
        result = MotherboardStorageValidator().validate(context)
        assert messages(result.warnings) == [
            "NVMe drive but motherboard M.2 slots are SATA only"
        ]


class TestHBARequirementValidator:
    """Tests for HBARequirementValidator."""

    def test_sas_requires_hba(self) -> None:
        result = HBARequirementValidator().validate(context_of(("storage", "sas-1")))
        assert messages(result.errors) == [
            "Storage configuration requires HBA card but none is present"
        ]

    def test_enterprise_model_requires_hba(self) -> None:
        drive = {
            "model": "Enterprise SSD",
            "capacity_gb": 960,
            "interface": "SATA",
            "form_factor": '2.5"',
        }
        result = HBARequirementValidator().validate(context_of(("storage", drive)))
        assert not result.success

    def test_sas_with_hba(self) -> None:
        context = context_of(("storage", "sas-1"), ("hbacard", "hba-sas"))

        result = HBARequirementValidator().validate(context)

        assert result.success
        assert messages(result.infos) == [
            "HBA card present for enterprise storage support",
            "HBA card has 8 ports for 1 SAS devices",
        ]

    def test_sas_exceeds_ports(self) -> None:
        context = context_of(
            *[("storage", "sas-1")] * 3,
            ("hbacard", {"model": "Small HBA", "port_count": 2}),
        )
        result = HBARequirementValidator().validate(context)
        assert messages(result.errors) == ["SAS drives (3) exceed HBA port count (2)"]

    def test_hba_without_ports(self) -> None:
        context = context_of(("storage", "sas-1"), ("hbacard", {"model": "Portless"}))
        result = HBARequirementValidator().validate(context)
        assert messages(result.errors) == [
            "HBA card has no SAS ports but SAS drives are present"
        ]

    def test_raid_group_warnings(self) -> None:
        drive = {
            "capacity_gb": 3840,
            "interface": "SATA",
            "form_factor": '2.5"',
            "raid_group": "r1",
        }
        context = context_of(("storage", drive), ("hbacard", "hba-sas"))

        result = HBARequirementValidator().validate(context)

        assert messages(result.warnings) == [
            "RAID configuration requires RAID-capable HBA but card does not support RAID",
            "RAID configuration recommended to use battery-backed cache for data protection",
        ]

    def test_unneeded_hba(self) -> None:
        context = context_of(("storage", "sata-1"), ("hbacard", "hba-sas"))
        result = HBARequirementValidator().validate(context)
        assert messages(result.infos) == [
            "HBA card present but not required for current storage configuration"
        ]


class TestPCIeAdapterValidator:
    """Tests for PCIeAdapterValidator."""

    def test_sata_m2_with_m2_slots(self) -> None:
        context = context_of(("motherboard", "mb-small"), ("storage", SATA_M2))
        result = PCIeAdapterValidator().validate(context)
        assert messages(result.warnings) == [
            "SATA drives with M.2 form factor need adapter - ensure M.2 slots support SATA"
        ]

    def test_sata_m2_without_m2_slots(self) -> None:
        board = {**PLAIN_BOARD, "sata_ports": 4}
        context = context_of(("motherboard", board), ("storage", SATA_M2))
        result = PCIeAdapterValidator().validate(context)
        assert messages(result.errors) == [
            "SATA drives with M.2 form factor need adapter but no M.2 slots available"
        ]

    @pytest.mark.parametrize(
        "bifurcation, expected_infos, expected_warnings",
        [
            (True, 1, 0),
            (False, 0, 1),
        ],
    )
    def test_nvme_without_m2_slots(
        self, bifurcation: bool, expected_infos: int, expected_warnings: int
    ) -> None:
        board = {**PLAIN_BOARD, "pcie_bifurcation": bifurcation}
        context = context_of(("motherboard", board), ("storage", "nvme-1"))

        result = PCIeAdapterValidator().validate(context)

        assert result.info_count == expected_infos
        assert result.warning_count == expected_warnings

    def test_u2_adapter_slots(self) -> None:
        roomy = PCIeAdapterValidator().validate(
            context_of(("motherboard", "mb-x13"), ("storage", U2_DRIVE))
        )
        tight = PCIeAdapterValidator().validate(
            context_of(("motherboard", "mb-small"), ("storage", U2_DRIVE))
        )

        assert messages(roomy.warnings) == [
            "U.2 drives need PCIe adapter - PCIe slots available for adapter"
        ]
        assert messages(tight.errors) == [
            "U.2 drives need PCIe adapter but insufficient PCIe slots"
        ]

    def test_adapter_needs(self) -> None:
        board = MotherboardSpec.model_validate({**PLAIN_BOARD, "sata_ports": 2})
        drives = [
            StorageSpec.model_validate(SATA_M2),
            StorageSpec.model_validate({"interface": "NVMe", "form_factor": "M.2"}),
            StorageSpec.model_validate(U2_DRIVE),
        ]

        needs = PCIeAdapterValidator.adapter_needs(drives, board)

        assert needs == {"sata_to_m2": 1, "nvme_to_pcie": 1, "u2_adapter": 1}


class TestStorageBayValidator:
    """Tests for StorageBayValidator."""

    def test_bay_usage(self) -> None:
        context = context_of(("chassis", "ch-rack"), ("storage", "nvme-1"), ("storage", "sata-1"))

        result = StorageBayValidator().validate(context)

        assert not result.has_warnings
        assert messages(result.infos) == ["Drive bay usage: 1/8 bays used"]

    def test_too_many_drives(self) -> None:
        context = context_of(("chassis", "ch-35"), *[("storage", "sata-35")] * 5)

        result = StorageBayValidator().validate(context)

        assert messages(result.errors) == ["Configuration needs 5 drive bays but chassis has 4"]
        assert messages(result.warnings) == ['5 3.5" drives but chassis has only 4 3.5" bays']

    def test_m2_without_dedicated_bays(self) -> None:
        context = context_of(("chassis", "ch-35"), ("storage", "nvme-1"))
        result = StorageBayValidator().validate(context)
        assert messages(result.warnings) == [
            "1 M.2 drives but chassis has no dedicated M.2 bays"
        ]

    def test_too_many_m2(self) -> None:
        context = context_of(("chassis", "ch-rack"), *[("storage", "nvme-1")] * 3)
        result = StorageBayValidator().validate(context)
        assert messages(result.warnings) == ["3 M.2 drives but chassis has only 2 M.2 bays"]

    def test_u2_without_bays(self) -> None:
        context = context_of(("chassis", "ch-rack"), ("storage", U2_DRIVE))
        result = StorageBayValidator().validate(context)
        assert messages(result.warnings) == ["1 U.2 drives but chassis has no U.2 bays"]

    @pytest.mark.parametrize(
        "drive, expected",
        [
            ({"interface": "NVMe", "form_factor": "M.2"}, "M.2"),
            (U2_DRIVE, "U.2"),
            ({"interface": "SATA", "form_factor": '3.5"'}, "3.5"),
            ({"interface": "SATA"}, "2.5"),
        ],
    )
    def test_bay_type(self, drive: dict, expected: str) -> None:
        assert StorageBayValidator.bay_type(StorageSpec.model_validate(drive)) == expected


class TestNVMeSlotValidator:
    """Tests for NVMeSlotValidator."""

    def test_can_run_only_with_nvme(self) -> None:
        validator = NVMeSlotValidator()
        assert not validator.can_run(context_of(("storage", "sata-1")))
        assert validator.can_run(context_of(("storage", "nvme-1")))

    def test_missing_motherboard(self) -> None:
        result = NVMeSlotValidator().validate(context_of(("storage", "nvme-1")))
        assert messages(result.warnings) == ["No motherboard found - cannot validate M.2 slots"]

    def test_clean_placement(self) -> None:
        context = context_of(("motherboard", "mb-x13"), ("storage", "nvme-1"))

        result = NVMeSlotValidator().validate(context)

        assert result.success
        assert not result.has_warnings
        assert messages(result.infos) == [
            "NVMe drive 0: 1920GB (5000Mbps)",
            "M.2 slots support PCIe Gen 4",
        ]

    def test_no_m2_slots(self) -> None:
        context = context_of(("motherboard", "mb-legacy"), ("storage", "nvme-1"))
        result = NVMeSlotValidator().validate(context)
        assert messages(result.errors) == ["No M.2 slots on motherboard but NVMe drives present"]

    def test_too_many_drives(self) -> None:
        context = context_of(
            ("motherboard", "mb-x13"),
            ("storage", "nvme-1"),
            ("storage", "nvme-2"),
            ("storage", "nvme-3"),
        )
        result = NVMeSlotValidator().validate(context)
        assert messages(result.errors) == ["More NVMe drives (3) than M.2 slots (2)"]

    def test_fast_drive_warnings(self) -> None:
        drive = {
            "capacity_gb": 3840,
            "interface": "NVMe",
            "form_factor": "M.2",
            "speed_mbps": 7000,
            "pcie_generation": 5,
        }
        context = context_of(("motherboard", "mb-x13"), ("storage", drive))

        result = NVMeSlotValidator().validate(context)

        assert messages(result.warnings) == [
            "NVMe drive 0: high-speed (7000Mbps) without thermal pads may thermal throttle",
            "NVMe drive requires PCIe Gen 5 but M.2 slots are only Gen 4",
        ]

    def test_generation_gap(self) -> None:
        board = {**PLAIN_BOARD, "m2_slots": 1, "m2_pcie_generation": 3, "pcie_generation": 5}
        context = context_of(("motherboard", board), ("storage", "nvme-2"))
        result = NVMeSlotValidator().validate(context)
        assert messages(result.warnings) == [
            "M.2 slots are PCIe Gen 3 but motherboard supports Gen 5"
        ]

    def test_sata_only_slot(self) -> None:
        board = {**PLAIN_BOARD, "m2_slots": 1, "m2_slot_type": "SATA"}
        context = context_of(("motherboard", board), ("storage", "nvme-2"))
        result = NVMeSlotValidator().validate(context)
        assert messages(result.warnings) == [
            "NVMe drive 0 in SATA-only M.2 slot - may not work or work at limited speed"
        ]
