#!/usr/bin/env python3
"""
Reporter module for formatting and displaying usage finder results.

This module handles all the printing and formatting logic for the CLI,
keeping the locator and scanner free of output concerns.
"""

import dataclasses
import json
import sys
from typing import Any, Dict, List

from models import ScanProgress, ScanResult, SchemaElement, UsageResult


def to_jsonable(obj: Any) -> Any:
    """Convert result dataclasses (and containers of them) to plain JSON data."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        data = dataclasses.asdict(obj)
        for name in ("total_usages", "is_partial", "complete"):
            if hasattr(obj, name):
                data[name] = getattr(obj, name)
        return data
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def output_json(results: Any) -> None:
    """
    Output results as JSON for piping to other tools.

    Args:
        results: UsageResult, ScanResult, or plain data
    """
    print(json.dumps(to_jsonable(results), indent=2, default=str))


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


class UsageReporter:
    """Handles all console output for the usage finder."""

    @staticmethod
    def print_banner() -> None:
        """Print the CLI banner."""
        print("=" * 60)
        print("🔍 Hygraph Component & Enum Usage Finder")
        print("=" * 60)
        print()

    @staticmethod
    def print_schema_loading_start(endpoint: str) -> None:
        print(f"\n🔄 Loading schema from {endpoint}...")

    @staticmethod
    def print_schema_summary(models: int, components: int, enums: int, unions: int) -> None:
        print("✅ Schema loaded successfully!")
        print(f"   📋 Models: {models}")
        print(f"   🧩 Components: {components}")
        print(f"   🔢 Enums: {enums}")
        print(f"   🔀 Unions: {unions}")

    @staticmethod
    def print_connection_status(status: Dict[str, Any]) -> None:
        if status.get("valid"):
            print(f"✅ Connection OK ({status.get('models_count', 0)} content types)")
        else:
            print_error(f"Connection failed: {status.get('error')}")

    @staticmethod
    def print_elements(elements: List[SchemaElement]) -> None:
        """Print the element index grouped by kind."""
        for kind, title in (("component", "🧩 Components"), ("enum", "🔢 Enums"), ("model", "📋 Models")):
            group = sorted((e for e in elements if e.kind == kind), key=lambda e: e.name)
            print(f"\n{title} ({len(group)}):")
            for element in group:
                line = f"   {element.name}"
                if element.used_in:
                    line += f"  ← {', '.join(element.used_in)}"
                elif kind != "model":
                    line += "  (no static references)"
                print(line)
                if element.description:
                    print(f"      {element.description}")

    @staticmethod
    def print_dependency_trace(name: str, trace: Dict[str, list]) -> None:
        print(f"\n🔗 Dependencies of {name}:")
        if not trace["direct"] and not trace["indirect"]:
            print("   No references found in the schema")
            return
        for ref in trace["direct"]:
            print(f"   direct:   {ref}")
        for ref in trace["indirect"]:
            print(f"   indirect: {ref['in']} (through {ref['through']})")

    @staticmethod
    def print_usage_result(result: UsageResult, verbose: bool = False) -> None:
        """Print the usages of one element, grouped by model."""
        element = result.element
        print(f"\n📊 Usage of {element.kind} {element.name}")
        print("=" * 50)
        if element.description:
            print(f"   {element.description}")
        print(f"   Total usages: {result.total_usages}")
        print(f"   Models: {', '.join(result.models_with_usage) or '-'}")

        for model_name in result.models_with_usage:
            print(f"\n   📋 {model_name}")
            for usage in result.usages:
                if usage.model_name != model_name:
                    continue
                path = ".".join(usage.field_path).replace(".[", "[")
                print(f"      {usage.entry_title} ({usage.entry_id}) → {path}")

        if result.is_partial:
            print(
                f"\n⚠️  Partial result: could not query {', '.join(result.failed_models)}"
            )
        elif not result.usages:
            print("\n   No usages found in the queried models")

        if verbose:
            UsageReporter.print_search_path(result.search_path)

    @staticmethod
    def print_search_path(search_path: List[str]) -> None:
        print("\n🧭 Search trace:")
        for step in search_path:
            print(f"   {step}")

    @staticmethod
    def print_scan_start(total: int) -> None:
        print(f"\n🔍 Scanning {total} components and enums...")

    @staticmethod
    def print_scan_progress(progress: ScanProgress) -> None:
        print(f"   [{progress.current}/{progress.total}] {progress.current_name}")

    @staticmethod
    def print_scan_summary(result: ScanResult, stats: Dict[str, Any]) -> None:
        """Print aggregate scan statistics."""
        print("\n📈 Usage Statistics")
        print("=" * 40)
        print(f"   Scanned: {stats['scanned']}/{stats['total']}")
        print(f"   ✅ Used: {stats['used']}")
        print(f"   💤 Unused: {len(stats['unused'])}")
        print(f"   🔢 Total usages: {stats['total_usages']}")

        if stats["top"]:
            print("\n🏆 Most used:")
            for item in stats["top"]:
                models = ", ".join(result.summaries[item["name"]].models)
                print(f"   {item['name']} ({item['kind']}): {item['count']} in {models}")

        if stats["unused"]:
            print("\n💤 No usages found:")
            for name in stats["unused"]:
                print(f"   {name}")

        if stats["unverified"]:
            print("\n❔ Not verified (some models could not be queried):")
            for name in stats["unverified"]:
                print(f"   {name}")

        if stats["failed"]:
            print("\n❌ Failed:")
            for name in stats["failed"]:
                print(f"   {name}: {result.errors[name]}")

        if not result.complete:
            print(
                f"\n⚠️  Scan stopped early: results cover {result.processed} of {result.total} elements"
            )
