from __future__ import annotations

from typing import Dict, Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from core.models import Outcome, Status

STATUS_STYLES: Dict[Status, str] = {
    Status.PENDING: 'dim',
    Status.IGNORED: 'cyan',
    Status.NORMAL: 'green',
    Status.STRIKED: 'yellow',
    Status.REMOVED: 'bold red',
}


def build_table(outcomes: Sequence[Outcome]) -> Table:
    table = Table(show_header=True, header_style='bold magenta')
    table.add_column('Strikes', justify='right')
    table.add_column('Status')
    table.add_column('Name', no_wrap=True)
    table.add_column('ETA')
    table.add_column('Size', justify='right')
    for o in outcomes:
        # Titles often contain brackets; Text keeps them out of markup parsing
        table.add_row(
            o.strikes,
            Text(str(o.status), style=STATUS_STYLES.get(o.status, '')),
            Text(o.name),
            o.eta,
            o.size,
        )
    return table


def render_table(outcomes: Sequence[Outcome], console: Optional[Console] = None) -> Optional[Table]:
    console = console or Console()
    if not outcomes:
        console.print('Queue is empty.', style='dim')
        return None
    table = build_table(outcomes)
    console.print(table)
    return table
