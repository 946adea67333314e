"""Jeu de données de démonstration: protocoles CLOSED réalistes pour deux tenants.

Utilisé par `scripts/seed_database.py` et par le dépôt mémoire quand `SEED_DEMO_DATA=true`.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from protocol_api.domain.execution_protocol import CLOSED, ExecutionProtocol, build_snapshot

BASE_DATE = datetime(2026, 2, 1, tzinfo=UTC)

_VIS_TEMPLATE = {"id": "VIS-4", "name": "Visual Inspection Protocol", "version": "4.0"}
_MAINT_TEMPLATE = {"id": "MAINT-2", "name": "Maintenance Protocol", "version": "2.1"}


def _field(field_id: str, label: str, type_: str, value, *, required: bool = True, **extra):
    return {
        "fieldId": field_id,
        "label": label,
        "type": type_,
        "value": value,
        "valid": extra.pop("valid", True),
        "required": required,
        **extra,
    }


def _key_facts(date: str, weather: str | None = None, notified: bool = True) -> dict:
    fields = [
        _field("service_company_notified", "Service Company Notified", "boolean", notified),
        _field("inspection_date", "Inspection Date", "date", date),
    ]
    if weather:
        fields.append(
            _field("weather_conditions", "Weather Conditions", "select", weather, required=False)
        )
    return {"title": "Key Facts", "order": 1, "fields": fields}


def _attachment(protocol_id: str, att_id: str, filename: str, mime: str, size: int, at: str):
    ext = filename.rsplit(".", 1)[-1]
    return {
        "id": att_id,
        "filename": filename,
        "url": f"/attachments/{protocol_id}/{att_id}.{ext}",
        "type": mime,
        "size": size,
        "uploadedAt": at,
    }


def _report(protocol_id: str, generated_at: str, size: int) -> dict:
    return {
        "url": f"/reports/{protocol_id}.pdf",
        "generatedAt": generated_at,
        "format": "PDF",
        "size": size,
    }


def _protocol(
    protocol_id: str,
    tenant_id: str,
    site: dict,
    plant: dict,
    created: str,
    closed: str,
    day_offset: int,
    snapshot: dict,
) -> ExecutionProtocol:
    return ExecutionProtocol(
        id=protocol_id,
        tenant_id=tenant_id,
        site_id=site["id"],
        plant_id=plant["id"],
        status=CLOSED,
        created_at=datetime.fromisoformat(created),
        closed_at=datetime.fromisoformat(closed),
        updated_at=BASE_DATE + timedelta(days=day_offset),
        snapshot=snapshot,
    )


def demo_protocols() -> list[ExecutionProtocol]:
    """Retourne les cinq protocoles de démonstration (tenant-acme: 3, tenant-globex: 2)."""
    out: list[ExecutionProtocol] = []

    pid = "550e8400-e29b-41d4-a716-446655440001"
    site, plant = {"id": "L3", "name": "Site L3 Berlin"}, {"id": "T17", "name": "Wind Turbine 17"}
    out.append(
        _protocol(
            pid,
            "tenant-acme",
            site,
            plant,
            "2026-01-15T08:00:00+00:00",
            "2026-01-15T10:30:00+00:00",
            1,
            build_snapshot(
                id=pid,
                site=site,
                plant=plant,
                template=_VIS_TEMPLATE,
                inspector={
                    "id": "inspector-001",
                    "name": "John Smith",
                    "email": "j.smith@acme-energy.com",
                },
                closed_at="2026-01-15T10:30:00Z",
                validation={"isValid": True, "errors": [], "warnings": []},
                sections=[
                    _key_facts("2026-01-15", "clear"),
                    {
                        "title": "Safety Checks",
                        "order": 2,
                        "fields": [
                            _field(
                                "safety_harness_checked", "Safety Harness Checked", "boolean", True
                            ),
                            _field("emergency_stop_tested", "Emergency Stop Tested", "boolean", True),
                            _field(
                                "fire_extinguisher_present",
                                "Fire Extinguisher Present",
                                "boolean",
                                True,
                            ),
                        ],
                    },
                    {
                        "title": "Visual Inspection Results",
                        "order": 3,
                        "fields": [
                            _field("blade_condition", "Blade Condition", "select", "excellent"),
                            _field("tower_condition", "Tower Condition", "select", "good"),
                            _field(
                                "notes",
                                "Additional Notes",
                                "text",
                                "All components in excellent condition. No maintenance required.",
                                required=False,
                            ),
                        ],
                    },
                ],
                attachments=[
                    _attachment(
                        pid, "att-001", "turbine_t17_overview.jpg", "image/jpeg", 2456789,
                        "2026-01-15T09:15:00Z",
                    ),
                    _attachment(
                        pid, "att-002", "blade_closeup.jpg", "image/jpeg", 3123456,
                        "2026-01-15T09:45:00Z",
                    ),
                ],
                report=_report(pid, "2026-01-15T10:30:00Z", 456789),
                metadata={
                    "executionDurationMinutes": 150,
                    "completedSteps": 12,
                    "totalSteps": 12,
                    "appVersion": "2.4.1",
                },
            ),
        )
    )

    pid = "550e8400-e29b-41d4-a716-446655440002"
    plant = {"id": "T18", "name": "Wind Turbine 18"}
    out.append(
        _protocol(
            pid,
            "tenant-acme",
            site,
            plant,
            "2026-02-01T09:00:00+00:00",
            "2026-02-01T11:45:00+00:00",
            5,
            build_snapshot(
                id=pid,
                site=site,
                plant=plant,
                template=_VIS_TEMPLATE,
                inspector={
                    "id": "inspector-002",
                    "name": "Jane Doe",
                    "email": "j.doe@acme-energy.com",
                },
                closed_at="2026-02-01T11:45:00Z",
                validation={
                    "isValid": True,
                    "errors": [],
                    "warnings": [
                        "Temperature sensor reading slightly elevated - recommend calibration"
                    ],
                },
                sections=[
                    _key_facts("2026-02-01", "cloudy"),
                    {
                        "title": "Safety Checks",
                        "order": 2,
                        "fields": [
                            _field(
                                "safety_harness_checked", "Safety Harness Checked", "boolean", True
                            ),
                            _field("emergency_stop_tested", "Emergency Stop Tested", "boolean", True),
                        ],
                    },
                ],
                report=_report(pid, "2026-02-01T11:45:00Z", 234567),
                metadata={
                    "executionDurationMinutes": 165,
                    "completedSteps": 8,
                    "totalSteps": 8,
                    "appVersion": "2.4.1",
                },
            ),
        )
    )

    pid = "550e8400-e29b-41d4-a716-446655440003"
    site, plant = {"id": "L5", "name": "Site L5 Hamburg"}, {"id": "T22", "name": "Wind Turbine 22"}
    out.append(
        _protocol(
            pid,
            "tenant-globex",
            site,
            plant,
            "2026-02-10T14:00:00+00:00",
            "2026-02-10T15:20:00+00:00",
            10,
            build_snapshot(
                id=pid,
                site=site,
                plant=plant,
                template=_MAINT_TEMPLATE,
                inspector={
                    "id": "inspector-003",
                    "name": "Bob Johnson",
                    "email": "b.johnson@globex-wind.com",
                },
                closed_at="2026-02-10T15:20:00Z",
                validation={"isValid": True, "errors": [], "warnings": []},
                sections=[
                    {
                        "title": "Maintenance Tasks",
                        "order": 1,
                        "fields": [
                            _field("oil_level_checked", "Oil Level Checked", "boolean", True),
                            _field("filter_replaced", "Filter Replaced", "boolean", True),
                            _field("oil_quality", "Oil Quality", "select", "excellent"),
                        ],
                    }
                ],
                attachments=[
                    _attachment(
                        pid, "att-003", "maintenance_log.pdf", "application/pdf", 123456,
                        "2026-02-10T15:10:00Z",
                    )
                ],
                report=_report(pid, "2026-02-10T15:20:00Z", 345678),
                metadata={
                    "executionDurationMinutes": 80,
                    "completedSteps": 5,
                    "totalSteps": 5,
                    "appVersion": "2.4.2",
                },
            ),
        )
    )

    pid = "550e8400-e29b-41d4-a716-446655440004"
    site, plant = {"id": "L8", "name": "Site L8 Munich"}, {"id": "T31", "name": "Wind Turbine 31"}
    out.append(
        _protocol(
            pid,
            "tenant-acme",
            site,
            plant,
            "2026-02-12T10:00:00+00:00",
            "2026-02-12T12:15:00+00:00",
            12,
            build_snapshot(
                id=pid,
                site=site,
                plant=plant,
                template=_VIS_TEMPLATE,
                inspector={
                    "id": "inspector-001",
                    "name": "John Smith",
                    "email": "j.smith@acme-energy.com",
                },
                closed_at="2026-02-12T12:15:00Z",
                validation={
                    "isValid": False,
                    "errors": ["Blade damage detected - immediate maintenance required"],
                    "warnings": [],
                },
                sections=[
                    _key_facts("2026-02-12"),
                    {
                        "title": "Visual Inspection Results",
                        "order": 2,
                        "fields": [
                            _field(
                                "blade_condition",
                                "Blade Condition",
                                "select",
                                "damaged",
                                valid=False,
                                errorMessage="Blade 2 shows crack at 15m mark",
                            ),
                            _field("tower_condition", "Tower Condition", "select", "good"),
                        ],
                    },
                ],
                attachments=[
                    _attachment(
                        pid, "att-004", "blade_damage_evidence.jpg", "image/jpeg", 4567890,
                        "2026-02-12T11:30:00Z",
                    )
                ],
                report=_report(pid, "2026-02-12T12:15:00Z", 567890),
                metadata={
                    "executionDurationMinutes": 135,
                    "completedSteps": 8,
                    "totalSteps": 12,
                    "appVersion": "2.4.1",
                    "priority": "HIGH",
                },
            ),
        )
    )

    pid = "550e8400-e29b-41d4-a716-446655440005"
    site, plant = {"id": "L5", "name": "Site L5 Hamburg"}, {"id": "T23", "name": "Wind Turbine 23"}
    out.append(
        _protocol(
            pid,
            "tenant-globex",
            site,
            plant,
            "2026-02-14T08:30:00+00:00",
            "2026-02-14T10:00:00+00:00",
            14,
            build_snapshot(
                id=pid,
                site=site,
                plant=plant,
                template={**_VIS_TEMPLATE, "version": "4.1"},
                inspector={
                    "id": "inspector-004",
                    "name": "Alice Chen",
                    "email": "a.chen@globex-wind.com",
                },
                closed_at="2026-02-14T10:00:00Z",
                validation={"isValid": True, "errors": [], "warnings": []},
                sections=[
                    _key_facts("2026-02-14", "rain", notified=False),
                    {
                        "title": "Safety Checks",
                        "order": 2,
                        "fields": [
                            _field(
                                "safety_harness_checked", "Safety Harness Checked", "boolean", True
                            )
                        ],
                    },
                ],
                report=_report(pid, "2026-02-14T10:00:00Z", 198765),
                metadata={
                    "executionDurationMinutes": 90,
                    "completedSteps": 6,
                    "totalSteps": 6,
                    "appVersion": "2.5.0",
                },
            ),
        )
    )
    return out
