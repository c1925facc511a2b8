"""Minimal HTML view of the claim market."""

from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from ...domain.ports.claim_store import ClaimStore
from ...domain.services.reinforcement_engine import ReinforcementEngine
from ..dependencies import get_claim_store, get_reinforcement_engine

router = APIRouter(tags=["ui"])

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Feedback Market</title>
  <style>
    body {{ font-family: sans-serif; margin: 2rem; }}
    table {{ border-collapse: collapse; width: 100%; }}
    th, td {{ border-bottom: 1px solid #ddd; padding: .5rem; text-align: left; }}
    .decaying {{ color: #999; }}
  </style>
</head>
<body>
  <h1>Feedback Market</h1>
  <table>
    <tr><th>Claim</th><th>Signal</th><th>Sources</th><th>Segments</th><th>Status</th></tr>
{rows}
  </table>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def index_page(
    store: ClaimStore = Depends(get_claim_store),
    engine: ReinforcementEngine = Depends(get_reinforcement_engine),
) -> HTMLResponse:
    """Render claims ordered by signal weight."""
    rows = []
    for claim in await store.list_claims():
        report = engine.classify(claim)
        status = "decaying" if report.decaying else "active"
        rows.append(
            f'    <tr class="{status}"><td>{escape(report.text)}</td>'
            f"<td>{report.signal_weight}</td>"
            f"<td>{escape(', '.join(sorted(report.sources)))}</td>"
            f"<td>{escape(', '.join(sorted(report.segments)))}</td>"
            f"<td>{status}</td></tr>"
        )
    return HTMLResponse(PAGE_TEMPLATE.format(rows="\n".join(rows)))
