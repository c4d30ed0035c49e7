from __future__ import annotations
import argparse
import io
import json
import logging
import logging.config
import os
import sys
import time
from importlib import resources as ir

import yaml

from dbresource_core.config_objects.common import ConnectionSetting, GeneralColumnType
from dbresource_core.config_objects.json_loader import JsonLoader
from dbresource_core.config_objects.result_set import (
    PrimaryCompareKey,
    RdhKey,
    ResultSetMeta,
    UniqCompareKey,
)
from dbresource_core.data_loaders.data_loader import DataLoader
from dbresource_core.diff.row_set_diff import diff
from dbresource_core.exceptions import DbResourceError
from dbresource_core.outputter.outputter import Outputter
from dbresource_core.rules.rule_validator import run_rule_engine
from dbresource_core.sql.bind_normalizer import normalize_query
from dbresource_core.sql.conditional_clause import compile_conditional_clause


def setup_logging(config_path: str | None = None) -> None:
    """
    Tries, in order:
      1) explicit path argument
      2) LOGGING_CONFIG env var
      3) package resource: dbresource_core/config/logging.yaml or .ini
      4) fallback basicConfig
    Supports YAML (dictConfig) and INI (fileConfig).
    """
    # 1) explicit path
    if config_path:
        _load_config_path(config_path)
        return

    # 2) env var
    env = os.getenv("LOGGING_CONFIG")
    if env:
        _load_config_path(env)
        return

    # 3) package resource
    for name in ("logging.yaml", "logging.yml", "logging.ini"):
        try:
            res = ir.files("dbresource_core.config").joinpath(name)
            if not res.is_file():
                continue
            if name.endswith((".yaml", ".yml")):
                cfg = yaml.safe_load(res.read_text(encoding="utf-8"))
                logging.config.dictConfig(cfg)
            else:
                logging.config.fileConfig(
                    io.StringIO(res.read_text(encoding="utf-8")),
                    defaults={"logfilename": os.getenv("APP_LOG", "app.log")},
                    disable_existing_loggers=False,
                )
            return
        except (OSError, ValueError, yaml.YAMLError) as e:
            # try next candidate
            print(f"Ignoring logging config {name}: {e}", file=sys.stderr)

    # 4) last-resort fallback
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname).1s %(name)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _load_config_path(path: str) -> None:
    if path.lower().endswith((".yaml", ".yml")):
        with open(path, "r", encoding="utf-8") as f:
            logging.config.dictConfig(yaml.safe_load(f))
    else:
        logging.config.fileConfig(
            path,
            defaults={"logfilename": os.getenv("APP_LOG", "app.log")},
            disable_existing_loggers=False,
        )


def _parse_column(spec: str) -> RdhKey:
    """``name:type`` -> RdhKey; the type defaults to text."""
    name, _, type_name = spec.partition(":")
    try:
        col_type = GeneralColumnType(type_name.strip().lower()) if type_name else GeneralColumnType.TEXT
    except ValueError:
        raise argparse.ArgumentTypeError(f"Unknown column type '{type_name}' for column '{name}'")
    return RdhKey(name=name.strip(), type=col_type)


def _load_json_argument(value: str | None):
    if not value:
        return {}
    if os.path.exists(value):
        with open(value, "r", encoding="utf-8") as f:
            return json.load(f)
    return json.loads(value)


def _connection_setting(args) -> ConnectionSetting:
    if args.connection_config:
        setting = JsonLoader.load_connection_setting(args.connection_config)
    else:
        setting = ConnectionSetting(name="default")
    if args.positioned_parameter:
        setting.positioned_parameter = True
    if args.quote:
        setting.quote = True
    return setting


def _compare_keys(args):
    keys = []
    if args.compare_key:
        keys.append(
            PrimaryCompareKey(
                kind="custom", names=[n.strip() for n in args.compare_key.split(",") if n.strip()]
            )
        )
    for name in args.uniq_key or []:
        keys.append(UniqCompareKey(kind="uniq", name=name))
    return keys


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output-type",
        default="console",
        help="What type of output you would like",
        choices=["console", "json"],
    )
    parser.add_argument(
        "--output-destination",
        default=None,
        help="filename of where to write the annotated result set",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SQL bind normalization, rule validation and result-set diffing."
    )
    parser.add_argument("--log-config", default=None, help="Path to a logging config (YAML or INI)")
    parser.add_argument(
        "--connection-config",
        default=None,
        help="YAML/JSON file with the connection setting (name, database, user, positionedParameter, quote)",
    )
    parser.add_argument(
        "--positioned-parameter",
        action="store_true",
        default=False,
        help="Emit $1, $2 ... instead of ? placeholders",
    )
    parser.add_argument(
        "--quote", action="store_true", default=False, help="Quote identifiers with backticks"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize_parser = subparsers.add_parser("normalize", help="Rewrite :name parameters to placeholders")
    normalize_parser.add_argument("--sql", required=True, help="SQL text, or a path to a .sql file")
    normalize_parser.add_argument("--binds", default=None, help="JSON object of bind values, or a path to one")

    where_parser = subparsers.add_parser("where", help="Compile a rule tree into a WHERE clause")
    where_parser.add_argument("--conditions", required=True, help="JSON/YAML file with an all/any tree")
    where_parser.add_argument(
        "--column",
        action="append",
        default=[],
        type=_parse_column,
        help="Column descriptor name:type, repeatable",
    )

    diff_parser = subparsers.add_parser("diff", help="Annotate the differences between two data files")
    diff_parser.add_argument("--old", required=True, help="Path to the old data file (CSV or JSON)")
    diff_parser.add_argument("--new", required=True, help="Path to the new data file (CSV or JSON)")
    diff_parser.add_argument("--compare-key", default=None, help="Comma-separated composite key columns")
    diff_parser.add_argument("--uniq-key", action="append", default=None, help="Single unique key column, repeatable")
    diff_parser.add_argument("--table-name", default=None, help="Table name recorded on the result sets")
    _add_output_arguments(diff_parser)

    validate_parser = subparsers.add_parser("validate", help="Validate a data file against a table rule")
    validate_parser.add_argument("--data-file", required=True, help="Path to the data file (CSV or JSON)")
    validate_parser.add_argument("--rule-file", required=True, help="JSON/YAML file with the table rule")
    _add_output_arguments(validate_parser)

    return parser


def run_normalize(args, setting: ConnectionSetting) -> int:
    sql = args.sql
    if sql.endswith(".sql") and os.path.exists(sql):
        with open(sql, "r", encoding="utf-8") as f:
            sql = f.read()
    result = normalize_query(
        sql,
        to_positioned_parameter=setting.positioned_parameter,
        bind_params=_load_json_argument(args.binds),
    )
    print(result.query)
    print(json.dumps(result.binds, default=str))
    return 0


def run_where(args, setting: ConnectionSetting) -> int:
    conditions = JsonLoader.load_conditions(args.conditions)
    clause = compile_conditional_clause(conditions, args.column, quote=setting.quote)
    print(clause.clause_text)
    print(json.dumps(clause.bind_params, default=str))
    return 0


def run_diff(args, setting: ConnectionSetting, log: logging.Logger) -> int:
    compare_keys = _compare_keys(args)
    if args.output_type != "console" and args.output_destination is None:
        log.info("No output destination given, writing %s to stdout", args.output_type)
    old_set = DataLoader(
        args.old,
        meta=ResultSetMeta(
            connection_name=setting.name, table_name=args.table_name, compare_keys=compare_keys
        ),
    ).load()
    new_set = DataLoader(
        args.new,
        meta=ResultSetMeta(connection_name=setting.name, table_name=args.table_name),
    ).load()
    result = diff(old_set, new_set)
    if not result.ok:
        log.error("Diff failed: %s", result.message)
        print(result.message)
        return 1
    outputter = Outputter(args.output_type, args.output_destination)
    outputter.write(old_set, result.message)
    outputter.write(new_set, result.message)
    return 0


def run_validate(args, setting: ConnectionSetting, log: logging.Logger) -> int:
    table_rule = JsonLoader.load_table_rule(args.rule_file)
    result_set = DataLoader(
        args.data_file,
        meta=ResultSetMeta(connection_name=setting.name, table_name=table_rule.table),
    ).load()
    ok = run_rule_engine(result_set, table_rule)
    summary = "All rules passed" if ok else "Rule violations found"
    log.info("Validation of %s: %s", args.data_file, summary)
    Outputter(args.output_type, args.output_destination).write(result_set, summary)
    return 0 if ok else 1


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_config)
    log = logging.getLogger(__name__)

    log.info("=== dbresource-core %s starting ===", args.command)
    log.info("Python version: %s", sys.version.split()[0])
    log.debug("Full arguments: %s", sys.argv if argv is None else argv)

    startTime = time.time()
    try:
        setting = _connection_setting(args)
        log.info("Connection: %s (positioned=%s, quote=%s)", setting.name, setting.positioned_parameter, setting.quote)
        if args.command == "normalize":
            status = run_normalize(args, setting)
        elif args.command == "where":
            status = run_where(args, setting)
        elif args.command == "diff":
            status = run_diff(args, setting, log)
        else:
            status = run_validate(args, setting, log)
    except (DbResourceError, FileNotFoundError, ValueError) as e:
        log.error("%s failed after %.3f seconds: %s", args.command, time.time() - startTime, e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    log.info("=== dbresource-core %s finished in %.3f seconds ===", args.command, time.time() - startTime)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
