#!/usr/bin/env python3
"""
Interactive CLI for Hygraph Component & Enum Usage Analysis

This CLI provides a user-friendly interface for:
- Schema loading and classification
- Listing components, enums and models with their static references
- Finding where a component or enum is used in content
- Scanning every component and enum for usage statistics

Usage:
    python cli.py                        # Interactive mode
    python cli.py --list                 # List schema elements
    python cli.py --find HeroBlock       # Find usages (kind auto-detected)
    python cli.py --scan                 # Scan everything
"""

import argparse
import logging
import sys
from typing import List, Optional

from classifier import classify
from config import (
    DEFAULT_LIMIT,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_HOPS,
    DEFAULT_STAGE,
    HYGRAPH_ENDPOINT,
    HYGRAPH_TOKEN,
    SCAN_DELAY,
)
from containment import build_element_index, get_element, trace_dependencies
from errors import SchemaFetchError
from loader import create_client, fetch_schema, load_client_schema, validate_connection
from locator import UsageLocator
from models import HygraphSchema, ScanProgress, SchemaElement
from reporter import UsageReporter, output_json, print_error
from scanner import scan_all, scannable_elements, usage_statistics


class UsageFinderCLI:
    """Interactive CLI for component and enum usage analysis."""

    def __init__(self, transport=None):
        self.endpoint = HYGRAPH_ENDPOINT
        self.token = HYGRAPH_TOKEN
        self.transport = transport
        self.schema: Optional[HygraphSchema] = None
        self.client_schema = None
        self.limit = DEFAULT_LIMIT
        self.max_hops = DEFAULT_MAX_HOPS
        self.max_depth = DEFAULT_MAX_DEPTH
        self.stage = DEFAULT_STAGE
        self.delay = SCAN_DELAY
        self.force_models: List[str] = []
        self.force_components: List[str] = []
        self.validate_queries = False
        self.json_output = False
        self.verbose = False

    def get_user_input(self, prompt: str, default: str = "", validator=None) -> str:
        """Get user input with validation."""
        while True:
            if default:
                user_input = input(f"{prompt} [{default}]: ").strip()
                if not user_input:
                    user_input = default
            else:
                user_input = input(f"{prompt}: ").strip()

            if validator and not validator(user_input):
                print_error(f"Invalid input: {user_input}")
                continue

            return user_input

    def get_transport(self):
        if self.transport is None:
            self.transport = create_client(self.endpoint, self.token)
        return self.transport

    def load_schema(self) -> HygraphSchema:
        """Introspect and classify the schema once per session."""
        if self.schema is not None:
            return self.schema

        transport = self.get_transport()
        if not self.json_output:
            UsageReporter.print_schema_loading_start(self.endpoint or "custom transport")
        raw = fetch_schema(transport)
        self.schema = classify(
            raw, force_models=self.force_models, force_components=self.force_components
        )
        if self.validate_queries:
            self.client_schema = load_client_schema(raw)
        if not self.json_output:
            UsageReporter.print_schema_summary(
                len(self.schema.models),
                len(self.schema.components),
                len(self.schema.enums),
                len(self.schema.unions),
            )
        return self.schema

    def build_locator(self) -> UsageLocator:
        return UsageLocator(
            self.get_transport(),
            self.load_schema(),
            limit=self.limit,
            max_hops=self.max_hops,
            max_depth=self.max_depth,
            stage=self.stage,
            client_schema=self.client_schema,
        )

    def resolve_element(self, name: str, kind: Optional[str] = None) -> Optional[SchemaElement]:
        """Find a component or enum by name, preferring components."""
        schema = self.load_schema()
        kinds = [kind] if kind else ["component", "enum"]
        for k in kinds:
            element = get_element(schema, name, k)
            if element is not None:
                return element
        print_error(f"No component or enum named {name}")
        return None

    def run_check_connection(self) -> bool:
        status = validate_connection(self.get_transport())
        if self.json_output:
            output_json(status)
        else:
            UsageReporter.print_connection_status(status)
        return bool(status["valid"])

    def run_list(self) -> None:
        elements = build_element_index(self.load_schema())
        if self.json_output:
            output_json(elements)
        else:
            UsageReporter.print_elements(elements)

    def run_trace(self, name: str) -> None:
        trace = trace_dependencies(name, self.load_schema())
        if self.json_output:
            output_json(trace)
        else:
            UsageReporter.print_dependency_trace(name, trace)

    def run_find(self, name: str, kind: Optional[str] = None) -> bool:
        element = self.resolve_element(name, kind)
        if element is None:
            return False
        result = self.build_locator().find_usage(element.name, element.kind)
        if self.json_output:
            output_json(result)
        else:
            UsageReporter.print_usage_result(result, verbose=self.verbose)
        return True

    def run_scan(self) -> None:
        schema = self.load_schema()
        locator = self.build_locator()

        def on_progress(progress: ScanProgress) -> bool:
            if not self.json_output:
                UsageReporter.print_scan_progress(progress)
            return True

        if not self.json_output:
            UsageReporter.print_scan_start(len(scannable_elements(schema)))
        result = scan_all(
            self.get_transport(),
            schema,
            on_progress=on_progress,
            delay=self.delay,
            locator=locator,
        )
        stats = usage_statistics(result)
        if self.json_output:
            output_json({"statistics": stats, "scan": result})
        else:
            UsageReporter.print_scan_summary(result, stats)

    def select_operation_mode(self) -> str:
        """Let user select the operation mode."""
        print("🎯 Select Operation Mode:")
        print("1. List Elements - Show components, enums and models")
        print("2. Find Usage - Locate one component or enum in content")
        print("3. Trace Dependencies - Show static references of a type")
        print("4. Scan All - Usage statistics for every component and enum")
        print("5. Quit")
        print()
        return self.get_user_input(
            "Enter your choice (1-5)", validator=lambda v: v in ["1", "2", "3", "4", "5"]
        )

    def run_interactive_mode(self) -> None:
        UsageReporter.print_banner()
        if not self.endpoint and self.transport is None:
            self.endpoint = self.get_user_input("Enter Hygraph content API endpoint")
        self.load_schema()

        while True:
            choice = self.select_operation_mode()
            if choice == "1":
                self.run_list()
            elif choice == "2":
                self.run_find(self.get_user_input("Component or enum name"))
            elif choice == "3":
                self.run_trace(self.get_user_input("Type name"))
            elif choice == "4":
                self.run_scan()
            else:
                print("👋 Goodbye!")
                return
            print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find where Hygraph components and enums are used in content",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py                          # Interactive mode
  python cli.py --list                   # List components, enums and models
  python cli.py --find HeroBlock         # Find usages of a component or enum
  python cli.py --enum Theme --verbose   # Enum usages with search trace
  python cli.py --scan --json            # Usage statistics as JSON
        """,
    )

    # Operation modes
    parser.add_argument("--list", action="store_true", help="List schema elements")
    parser.add_argument("--find", type=str, help="Find usages of a component or enum")
    parser.add_argument("--component", type=str, help="Find usages of a component")
    parser.add_argument("--enum", type=str, help="Find usages of an enum")
    parser.add_argument("--trace", type=str, help="Show static references of a type")
    parser.add_argument("--scan", action="store_true", help="Scan all components and enums")
    parser.add_argument(
        "--check-connection", action="store_true", help="Validate endpoint and token"
    )

    # Connection
    parser.add_argument("--endpoint", type=str, default=HYGRAPH_ENDPOINT, help="Content API endpoint")
    parser.add_argument("--token", type=str, default=HYGRAPH_TOKEN, help="Permanent auth token")

    # Search bounds
    parser.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Entries fetched per model")
    parser.add_argument(
        "--max-hops", type=int, default=DEFAULT_MAX_HOPS, help="Containment search rounds"
    )
    parser.add_argument(
        "--max-depth", type=int, default=DEFAULT_MAX_DEPTH, help="Query nesting depth"
    )
    parser.add_argument("--stage", type=str, default=DEFAULT_STAGE, help="Content stage")
    parser.add_argument(
        "--delay", type=float, default=SCAN_DELAY, help="Seconds between elements when scanning"
    )

    # Classification overrides
    parser.add_argument(
        "--force-model", action="append", default=[], help="Treat type as a model (repeatable)"
    )
    parser.add_argument(
        "--force-component",
        action="append",
        default=[],
        help="Treat type as a component (repeatable)",
    )

    parser.add_argument(
        "--validate-queries",
        action="store_true",
        help="Validate synthesized queries against the introspected schema before sending",
    )
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    return parser


def main(argv: Optional[List[str]] = None, transport=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cli = UsageFinderCLI(transport=transport)
    cli.endpoint = args.endpoint
    cli.token = args.token
    cli.limit = args.limit
    cli.max_hops = args.max_hops
    cli.max_depth = args.max_depth
    cli.stage = args.stage
    cli.delay = args.delay
    cli.force_models = args.force_model
    cli.force_components = args.force_component
    cli.validate_queries = args.validate_queries
    cli.json_output = args.json
    cli.verbose = args.verbose

    try:
        if args.check_connection:
            return 0 if cli.run_check_connection() else 1
        if args.list:
            cli.run_list()
        elif args.trace:
            cli.run_trace(args.trace)
        elif args.component:
            return 0 if cli.run_find(args.component, "component") else 1
        elif args.enum:
            return 0 if cli.run_find(args.enum, "enum") else 1
        elif args.find:
            return 0 if cli.run_find(args.find) else 1
        elif args.scan:
            cli.run_scan()
        else:
            # Default to interactive mode
            cli.run_interactive_mode()
    except SchemaFetchError as e:
        print_error(f"Schema could not be loaded: {e}")
        return 1
    except ValueError as e:
        print_error(str(e))
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\n👋 Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
