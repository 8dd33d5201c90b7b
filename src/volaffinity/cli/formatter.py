# src/volaffinity/cli/formatter.py
import io
import json
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from ruamel.yaml import YAML

from volaffinity.core.models import Consumer, PlacementConstraint, VolumeClaim

# Initialize the Rich console for high-quality terminal output
console = Console()


class AffinityFormatter:
    """
    AffinityFormatter: renders resolver results for humans (rich) and
    for other tools (YAML / JSON).
    """

    def __init__(self, out: Optional[Console] = None):
        self.console = out or console
        self.yaml = YAML()
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.default_flow_style = False

    def to_yaml(self, constraint: PlacementConstraint) -> str:
        stream = io.StringIO()
        self.yaml.dump(constraint.to_manifest(), stream)
        return stream.getvalue()

    def to_json(self, constraint: PlacementConstraint) -> str:
        return json.dumps(constraint.to_manifest(), indent=2)

    def emit(self, constraint: PlacementConstraint, claim: VolumeClaim, output: str = "table"):
        if output == "yaml":
            self.console.out(self.to_yaml(constraint), highlight=False, end="")
        elif output == "json":
            self.console.out(self.to_json(constraint), highlight=False)
        else:
            self.show_constraint(constraint, claim)

    def show_constraint(self, constraint: PlacementConstraint, claim: VolumeClaim):
        modes = ", ".join(m.value for m in claim.access_modes) or "none reported"
        if constraint.is_pinned:
            body = (
                f"[bold yellow]PINNED[/bold yellow] to node "
                f"[bold cyan]{constraint.node_name or '<unscheduled>'}[/bold cyan]\n"
                f"Copied from pod: [white]{constraint.source}[/white]"
            )
            border = "yellow"
        else:
            body = "[bold green]UNRESTRICTED[/bold green] - any node may attach this volume"
            border = "green"

        self.console.print(Panel(
            f"Claim: [bold]{claim.namespace}/{claim.name}[/bold]\n"
            f"Access modes: {modes}\n\n{body}",
            title="[bold white]Volume Affinity[/bold white]",
            border_style=border,
            expand=False,
        ))

        if constraint.tolerations:
            table = Table(title="Required Tolerations", header_style="bold magenta")
            for column in ("Key", "Operator", "Value", "Effect", "Seconds"):
                table.add_column(column)
            for t in constraint.tolerations:
                table.add_row(
                    t.key or "", t.operator or "", t.value or "", t.effect or "",
                    "" if t.toleration_seconds is None else str(t.toleration_seconds),
                )
            self.console.print(table)

    def show_consumers(self, claim: VolumeClaim, consumers: List[Consumer],
                       internal: List[bool], selected: Optional[str]):
        """
        Explains a decision: every pod mounting the claim, which ones were
        ignored as internal, and the one that was picked.
        """
        table = Table(title=f"Consumers of {claim.namespace}/{claim.name}",
                      show_lines=True, header_style="bold magenta")
        table.add_column("Pod", style="cyan")
        table.add_column("Phase")
        table.add_column("Node")
        table.add_column("Tolerations", justify="right")
        table.add_column("Internal", justify="center")
        table.add_column("Selected", justify="center")

        for consumer, is_internal in zip(consumers, internal):
            phase_color = "green" if consumer.phase.value == "Running" else "yellow"
            table.add_row(
                consumer.name,
                f"[{phase_color}]{consumer.phase.value}[/{phase_color}]",
                consumer.node_name or "[dim]-[/dim]",
                str(len(consumer.tolerations)),
                "🔒" if is_internal else "",
                "✅" if consumer.name == selected else "",
            )

        if not consumers:
            self.console.print(f"[dim]ℹ No pods reference {claim.namespace}/{claim.name}.[/dim]")
            return
        self.console.print(table)
