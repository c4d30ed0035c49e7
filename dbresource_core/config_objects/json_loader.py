import json
import logging
import os
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from dbresource_core.config_objects.common import ConnectionSetting
from dbresource_core.config_objects.rule import TableRule, TopLevelCondition, parse_conditions
from dbresource_core.exceptions import InvalidRuleException


class JsonLoader:
    """Reads rule and connection definitions from JSON, or YAML by extension."""

    log = logging.getLogger(f"{__name__}.{__qualname__}")

    @staticmethod
    def load_document(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Definition file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        JsonLoader.log.debug("Loaded %s", path)
        return data

    @staticmethod
    def load_table_rule(path: str) -> TableRule:
        data = JsonLoader.load_document(path)
        try:
            table_rule = TableRule.model_validate(data)
        except ValidationError as e:
            raise InvalidRuleException(f"Invalid table rule in {path}: {e}") from e
        JsonLoader.log.info(
            "Loaded %d rules for table %s", len(table_rule.details), table_rule.table
        )
        return table_rule

    @staticmethod
    def load_conditions(path: str) -> TopLevelCondition:
        return parse_conditions(JsonLoader.load_document(path))

    @staticmethod
    def load_connection_setting(path: str) -> ConnectionSetting:
        data = JsonLoader.load_document(path) or {}
        try:
            return ConnectionSetting.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid connection setting in {path}: {e}") from e
