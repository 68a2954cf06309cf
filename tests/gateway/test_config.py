import json
import logging

import pytest

from heckegate import CatalogMisconfiguration, create_default_catalog
from heckegate_gateway import config
from heckegate_gateway.logging_config import AuditLogger, StructuredFormatter, set_request_id


def test_validate_config_lists_only_set_paths(tmp_path, monkeypatch):
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text(json.dumps(create_default_catalog().to_dict()))

    monkeypatch.setattr(config, "CATALOG_PATH", str(catalog_path))
    monkeypatch.setattr(config, "SIGNING_KEY_PATH", str(tmp_path / "missing.json"))

    assert config.validate_config() == {"catalog": True, "signing_key": False}


def test_load_catalog_from_file(tmp_path, monkeypatch):
    data = create_default_catalog().to_dict()
    data["version"] = "1.1.0"
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(data))
    monkeypatch.setattr(config, "CATALOG_PATH", str(path))

    catalog = config.load_catalog()
    assert catalog.version == "1.1.0"
    assert catalog.get_hash() != create_default_catalog().get_hash()


def test_load_broken_catalog(tmp_path, monkeypatch):
    data = create_default_catalog().to_dict()
    data["registries"][1]["signatures"] = []
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(data))
    monkeypatch.setattr(config, "CATALOG_PATH", str(path))

    with pytest.raises(CatalogMisconfiguration):
        config.load_catalog()


def test_default_catalog_without_path(monkeypatch):
    monkeypatch.setattr(config, "CATALOG_PATH", "")
    assert config.load_catalog().id == "hecke.default"


def test_environment_flags(monkeypatch):
    monkeypatch.setattr(config, "ENV", "prod")
    assert config.is_production()
    monkeypatch.setenv("HECKE_DEBUG", "true")
    assert config.is_debug()


def test_structured_audit_record():
    records = []

    class Capture(logging.Handler):
        def emit(self, record):
            records.append(self.format(record))

    handler = Capture()
    handler.setFormatter(StructuredFormatter())
    audit = AuditLogger("heckegate.audit.test")
    audit._logger.addHandler(handler)
    audit._logger.propagate = False
    try:
        set_request_id("req-42")
        audit.verification_decision("TX-1", "BLOCKED", "sha256:ab", finding_code="DUP-INIT", violated=["R1"])
    finally:
        audit._logger.removeHandler(handler)

    entry = json.loads(records[0])
    assert entry["event_type"] == "VERIFICATION_DECISION"
    assert entry["level"] == "WARNING"
    assert entry["request_id"] == "req-42"
    assert entry["finding_code"] == "DUP-INIT"
    assert entry["violated"] == ["R1"]
