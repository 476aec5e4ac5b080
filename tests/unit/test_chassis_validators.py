"""Unit tests for chassis, physical fit and caddy validators."""

import pytest

from serverbuild.application.validation.validators import (
    CaddyValidator,
    ChassisValidator,
    FormFactorLockValidator,
    FormFactorValidator,
)
from serverbuild.application.validation.validators.chassis import caddy_fits_drive

from conftest import context_of


def messages(entries) -> list[str]:
    return [entry.message for entry in entries]


class TestChassisValidator:
    """Tests for ChassisValidator."""

    def test_rack_chassis(self) -> None:
        context = context_of(("chassis", "ch-rack"), ("cpu", "cpu-xeon"))

        result = ChassisValidator().validate(context)

        assert result.success
        assert not result.has_warnings
        assert messages(result.infos) == [
            "Chassis has 8 drive bays",
            "Chassis supports 7 PCIe slot(s)",
            "Chassis is 2U rackmount",
            "Chassis has 4 cooling fan(s)",
        ]

    def test_bare_chassis(self) -> None:
        result = ChassisValidator().validate(context_of(("chassis", {"model": "Empty"})))

        assert messages(result.errors) == ["Chassis field 'form_factor' is required but missing"]
        assert messages(result.warnings) == [
            "Chassis has no drive bays",
            "Chassis has no PCIe slots - cannot add expansion cards",
            "Chassis has no pre-installed cooling fans",
        ]

    def test_single_fan(self) -> None:
        chassis = {"model": "Quiet", "form_factor": "Tower", "drive_bays": 2, "pcie_slots": 4, "fans": 1}
        result = ChassisValidator().validate(context_of(("chassis", chassis)))
        assert messages(result.warnings) == [
            "Chassis has only 1 cooling fan - limited thermal dissipation"
        ]

    def test_airflow_for_hot_cpu(self) -> None:
        chassis = {
            "model": "Slim",
            "form_factor": "Rack",
            "drive_bays": 4,
            "pcie_slots": 2,
            "fans": 2,
            "max_airflow_cfm": 150,
        }
        context = context_of(("chassis", chassis), ("cpu", "cpu-xeon"))

        result = ChassisValidator().validate(context)

        assert messages(result.warnings) == [
            "High CPU TDP (185W) with limited chassis airflow (150CFM)"
        ]


class TestFormFactorLockValidator:
    """Tests for FormFactorLockValidator."""

    def test_everything_fits(self) -> None:
        context = context_of(
            ("chassis", "ch-rack"),
            ("motherboard", "mb-x13"),
            ("psu", "psu-crps"),
            ("cpu", "cpu-xeon"),
        )

        result = FormFactorLockValidator().validate(context)

        assert result.success
        assert not result.has_warnings
        assert messages(result.infos) == [
            "Validating physical fit for Supermicro CSE-829U chassis",
            "Motherboard 'EATX' compatible with 'RACK' chassis",
            "PSU form factor 'CRPS' fits in chassis",
        ]

    def test_board_does_not_fit_enclosure(self) -> None:
        context = context_of(("chassis", "ch-35"), ("motherboard", {"form_factor": "ITX"}))
        result = FormFactorLockValidator().validate(context)
        assert messages(result.errors) == [
            "Motherboard form factor 'ITX' incompatible with 'TOWER' chassis"
        ]

    def test_board_sized_chassis(self) -> None:
        """A chassis described by board size agrees with FormFactorValidator."""
        chassis = {"model": "Desk", "form_factor": "ATX", "supported_form_factors": ["ATX"]}
        context = context_of(("chassis", chassis), ("motherboard", "mb-small"))

        lock = FormFactorLockValidator().validate(context)
        form_factor = FormFactorValidator().validate(context)

        assert lock.success
        assert form_factor.success
        assert "Motherboard 'ATX' compatible with 'ATX' chassis" in messages(lock.infos)

    def test_board_sized_chassis_too_small(self) -> None:
        chassis = {"model": "Desk", "form_factor": "MATX"}
        context = context_of(("chassis", chassis), ("motherboard", "mb-small"))

        result = FormFactorLockValidator().validate(context)

        assert messages(result.errors) == [
            "Motherboard form factor 'ATX' incompatible with 'MATX' chassis"
        ]

    def test_enclosure_defaults_to_tower(self) -> None:
        context = context_of(("chassis", {"model": "Plain"}), ("motherboard", {"form_factor": "ATX"}))
        result = FormFactorLockValidator().validate(context)
        assert "Motherboard 'ATX' compatible with 'TOWER' chassis" in messages(result.infos)

    def test_psu_form_factor(self) -> None:
        context = context_of(("chassis", "ch-rack"), ("psu", "psu-atx"))
        result = FormFactorLockValidator().validate(context)
        assert messages(result.errors) == [
            "PSU form factor 'ATX' not supported by 'RACK' chassis. Supported: CRPS"
        ]

    def test_hot_cpu_in_small_chassis(self) -> None:
        chassis = {"model": "Box", "form_factor": "Tower", "fans": 1, "max_cooler_height_mm": 120}
        context = context_of(("chassis", chassis), ("cpu", "cpu-epyc"))

        result = FormFactorLockValidator().validate(context)

        assert messages(result.warnings) == [
            "High TDP CPU (280W) with limited chassis cooling (only 1 fans)",
            "High TDP CPU (280W) but chassis cooler clearance is limited (120mm)",
        ]

    def test_long_cards_in_compact_chassis(self) -> None:
        context = context_of(
            ("chassis", {"model": "Tiny", "form_factor": "Compact"}),
            ("pciecard", {"model": "Short card", "length_mm": 200}),
            ("nic", "nic-rj45"),
        )

        result = FormFactorLockValidator().validate(context)

        assert messages(result.warnings) == [
            "PCIe card 1 (280mm) may be too long for compact chassis"
        ]


class TestCaddyFit:
    """Tests for caddy_fits_drive."""

    @pytest.mark.parametrize(
        "caddy, drive, expected",
        [
            ('2.5"', '2.5"', True),
            ("2.5", '2.5"', True),
            ("2.5", '3.5"', False),
            ("M.2", "U.2", True),
            ('3.5"', "M.2", False),
            (None, None, True),
        ],
    )
    def test_fit(self, caddy, drive, expected: bool) -> None:
        assert caddy_fits_drive(caddy, drive) is expected


class TestCaddyValidator:
    """Tests for CaddyValidator."""

    def test_matching_caddy(self) -> None:
        context = context_of(("chassis", "ch-rack"), ("storage", "sata-1"), ("caddy", "caddy-25"))

        result = CaddyValidator().validate(context)

        assert result.success
        assert not result.has_warnings
        assert messages(result.infos) == ["Caddy 0: bay mounted", "Caddy 0: 2.5 drive caddy"]

    def test_caddy_fits_no_drive(self) -> None:
        context = context_of(("storage", "sata-1"), ("caddy", "caddy-35"))
        result = CaddyValidator().validate(context)
        assert messages(result.errors) == ['Caddy 0 (3.5) incompatible with drive 0 (2.5")']

    def test_mixed_layout_is_fine(self) -> None:
        """One fitting drive should be enough."""
        context = context_of(("storage", "nvme-1"), ("storage", "sata-1"), ("caddy", "caddy-25"))
        assert CaddyValidator().validate(context).success

    def test_without_drives(self) -> None:
        assert CaddyValidator().validate(context_of(("caddy", "caddy-35"))).success

    def test_bare_caddy(self) -> None:
        result = CaddyValidator().validate(context_of(("caddy", {"form_factor": "5.25"})))
        assert messages(result.warnings) == [
            "Caddy 0: model not specified",
            "Caddy 0: unknown form factor '5.25'",
            "Caddy 0: mounting type not specified",
        ]

    def test_plastic_caddy(self) -> None:
        caddy = {"model": "Cheap", "form_factor": '2.5"', "material": "Plastic", "mounting_type": "Bracket"}
        result = CaddyValidator().validate(context_of(("caddy", caddy)))
        assert messages(result.warnings) == [
            "Caddy 0: plastic material - may not be durable for enterprise use"
        ]
        assert "Caddy 0: bracket mounted" in messages(result.infos)

    def test_rail_caddy_without_rail_support(self) -> None:
        caddy = {"model": "Rail", "form_factor": '3.5"', "mounting_type": "Rail"}
        context = context_of(("chassis", "ch-35"), ("caddy", caddy))

        result = CaddyValidator().validate(context)

        assert messages(result.warnings) == [
            "Caddy 0: rail mounting but chassis may not have rail support"
        ]
        assert "Caddy 0: rail mounted" in messages(result.infos)

    def test_unknown_mounting(self) -> None:
        caddy = {"model": "Odd", "form_factor": '2.5"', "mounting_type": "Glue"}
        result = CaddyValidator().validate(context_of(("caddy", caddy)))
        assert messages(result.warnings) == ["Caddy 0: unknown mounting type 'GLUE'"]
