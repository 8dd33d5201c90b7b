#!/usr/bin/env python3
"""
VOLAFFINITY CLI
---------------
Command-line front end for the affinity resolver.

  volaffinity resolve CLAIM -n NS --manifests ./snapshot/
  volaffinity resolve CLAIM -n NS --live --output yaml
  volaffinity consumers CLAIM -n NS --live

Author: VolAffinity Team
Date: 2026-10-19
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel

from volaffinity.config import ResolverConfig, load_config
from volaffinity.core.errors import InvalidInputError, LookupFailureError
from volaffinity.core.models import VolumeClaim
from volaffinity.core.resolver import AffinityResolver
from volaffinity.cli.formatter import AffinityFormatter
from volaffinity.store.base import ClaimSource
from volaffinity.store.manifest import ManifestStore
from volaffinity.store.memory import InMemoryConsumerStore

# Global console for consistent styling across the application
console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_INVALID = 2
EXIT_LOOKUP = 3
EXIT_INTERRUPTED = 130

VERSION = "0.1.0"


def setup_logging(level: str):
    """Library modules only create loggers; handlers are installed here."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="[%(asctime)s] %(name)s %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


class VolAffinityCLI:
    """
    CLI wrapper that translates user commands into resolver calls.
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="volaffinity",
            description="VolAffinity - node placement for consumers of single-writer volumes",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()
        self.formatter = AffinityFormatter(console)

    def _add_common(self, sub: argparse.ArgumentParser):
        sub.add_argument("claim", help="Name of the PersistentVolumeClaim")
        sub.add_argument("-n", "--namespace", default="default", help="Namespace of the claim")
        source = sub.add_mutually_exclusive_group(required=True)
        source.add_argument("--manifests", metavar="PATH", help="YAML file or directory holding Pods and PVCs")
        source.add_argument("--live", action="store_true", help="Query the cluster from the current kubeconfig")
        sub.add_argument("--context", help="kubeconfig context (with --live)")
        sub.add_argument("--timeout", type=float, help="API request timeout in seconds")
        sub.add_argument("--owner-label", help="Label key marking internal data-mover pods")
        sub.add_argument("--owner-value", help="Label value marking internal data-mover pods")
        sub.add_argument("--config", help="YAML configuration file")
        sub.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")

    def _setup_args(self):
        self.parser.add_argument("-v", "--version", action="version", version=f"volaffinity v{VERSION}")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        resolve_parser = subparsers.add_parser("resolve", help="📌 Compute the placement constraint for a claim")
        self._add_common(resolve_parser)
        resolve_parser.add_argument("-o", "--output", choices=["table", "yaml", "json"], default="table",
                                    help="Output format (default: table)")

        consumers_parser = subparsers.add_parser("consumers", help="🔍 List the pods using a claim")
        self._add_common(consumers_parser)

    def _build_config(self, args: argparse.Namespace) -> ResolverConfig:
        cfg = load_config(args.config)
        return cfg.merged({
            "owner_label_key": args.owner_label,
            "owner_label_value": args.owner_value,
            "request_timeout": args.timeout,
            "kube_context": args.context,
            "log_level": args.log_level,
        })

    def _build_store(self, args: argparse.Namespace, cfg: ResolverConfig):
        if args.manifests:
            return ManifestStore(path=args.manifests, default_namespace=args.namespace)
        # Imported lazily so offline use does not need cluster credentials
        from volaffinity.store.kube import KubeConsumerStore
        return KubeConsumerStore(request_timeout=cfg.request_timeout, context=cfg.kube_context)

    def _load_claim(self, store: ClaimSource, namespace: str, name: str) -> VolumeClaim:
        claim = store.get_claim(namespace, name)
        if claim is None:
            raise InvalidInputError(f"PersistentVolumeClaim '{namespace}/{name}' not found")
        return claim

    def _run_resolve(self, args: argparse.Namespace, cfg: ResolverConfig) -> int:
        store = self._build_store(args, cfg)
        claim = self._load_claim(store, args.namespace, args.claim)
        constraint = AffinityResolver(store, is_internal=cfg.ownership()).resolve(claim)
        self.formatter.emit(constraint, claim, args.output)
        return EXIT_OK

    def _run_consumers(self, args: argparse.Namespace, cfg: ResolverConfig) -> int:
        store = self._build_store(args, cfg)
        claim = self._load_claim(store, args.namespace, args.claim)
        predicate = cfg.ownership()

        # One read of the namespace feeds both the listing and the decision
        snapshot = InMemoryConsumerStore()
        for consumer in store.list_consumers(claim.namespace):
            snapshot.add_consumer(consumer)
        users = sorted((c for c in snapshot.list_consumers(claim.namespace) if c.uses_claim(claim.name)),
                       key=lambda c: c.name)
        constraint = AffinityResolver(snapshot, is_internal=predicate).resolve(claim)
        self.formatter.show_consumers(claim, users, [predicate(c) for c in users], constraint.source)
        self.formatter.show_constraint(constraint, claim)
        return EXIT_OK

    def print_header(self, subtitle: str):
        console.print(Panel.fit(
            f"[bold cyan]VolAffinity v{VERSION}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit code."""
        args = self.parser.parse_args(argv)
        if not args.command:
            self.parser.print_help()
            return EXIT_OK

        try:
            cfg = self._build_config(args)
        except ValueError as e:
            err_console.print(f"[bold red]Configuration error:[/bold red] {e}")
            return EXIT_INVALID
        setup_logging(cfg.log_level)

        try:
            if args.command == "resolve":
                if args.output == "table":
                    self.print_header("Affinity Resolution")
                return self._run_resolve(args, cfg)
            self.print_header("Claim Consumers")
            return self._run_consumers(args, cfg)
        except InvalidInputError as e:
            err_console.print(f"[bold red]Invalid input:[/bold red] {e}")
            return EXIT_INVALID
        except LookupFailureError as e:
            err_console.print(f"[bold red]Lookup failed:[/bold red] {e}")
            return EXIT_LOOKUP


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point with interrupt handling."""
    try:
        return VolAffinityCLI().run(argv)
    except KeyboardInterrupt:
        err_console.print("\n[bold red]Terminated by user.[/bold red]")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
