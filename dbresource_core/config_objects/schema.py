import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from dbresource_core.config_objects.common import ConnectionSetting, GeneralColumnType
from dbresource_core.config_objects.result_set import (
    CompareKey,
    PrimaryCompareKey,
    UniqCompareKey,
)

log = logging.getLogger(__name__)


class DbColumn(BaseModel):
    name: str
    col_type: GeneralColumnType = Field(GeneralColumnType.UNKNOWN, alias="colType")
    primary_key: bool = Field(False, alias="primaryKey")
    unique_key: bool = Field(False, alias="uniqKey")
    nullable: bool = True
    comment: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class DbTable(BaseModel):
    name: str
    comment: Optional[str] = None
    children: List[DbColumn] = Field(default_factory=list)

    def get_column(self, name: str) -> Optional[DbColumn]:
        return next((c for c in self.children if c.name == name), None)

    def get_compare_keys(self) -> List[CompareKey]:
        """Primary key columns as one composite key, then one key per unique column."""
        keys: List[CompareKey] = []
        primary = [c.name for c in self.children if c.primary_key]
        if primary:
            keys.append(PrimaryCompareKey(kind="primary", names=primary))
        for column in self.children:
            if column.unique_key:
                keys.append(UniqCompareKey(kind="uniq", name=column.name))
        return keys


class DbSchema(BaseModel):
    name: str
    is_default: bool = Field(False, alias="isDefault")
    children: List[DbTable] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def get_table(self, name: str) -> Optional[DbTable]:
        lowered = name.lower()
        return next((t for t in self.children if t.name.lower() == lowered), None)


class RdsDatabase(BaseModel):
    name: str
    children: List[DbSchema] = Field(default_factory=list)

    def get_schema(
        self, name: Optional[str] = None, is_default: Optional[bool] = None
    ) -> Optional[DbSchema]:
        for schema in self.children:
            if name is not None and schema.name != name:
                continue
            if is_default is not None and schema.is_default != is_default:
                continue
            return schema
        return None

    def find_table(self, name: Optional[str]) -> Optional[DbTable]:
        """Case-insensitive lookup, default schema first."""
        if not name:
            return None
        default = self.get_schema(is_default=True)
        ordered = [default] if default else []
        ordered += [s for s in self.children if s is not default]
        for schema in ordered:
            table = schema.get_table(name)
            if table:
                return table
        return None

    def reset_default_schema(self, setting: ConnectionSetting) -> Optional[DbSchema]:
        search_names = []
        if setting.database:
            search_names.append(setting.database)
        if setting.user:
            search_names.append(setting.user)
        search_names.append("public")

        for schema in self.children:
            schema.is_default = False

        for search_name in search_names:
            idx = next(
                (i for i, s in enumerate(self.children) if s.name == search_name), -1
            )
            if idx >= 0:
                default_schema = self.children.pop(idx)
                default_schema.is_default = True
                self.children.insert(0, default_schema)
                log.debug("Default schema resolved by name: %s", search_name)
                return default_schema

        if self.children:
            self.children[0].is_default = True
            log.debug("Default schema falls back to first schema: %s", self.children[0].name)
            return self.children[0]
        return None
