"""Interactive HTML seating map built with networkx and pyvis."""
import math
from typing import Dict, List, Sequence, Tuple

import networkx as nx
from pyvis.network import Network

from .models import Guest, RelationshipKind, SeatingPlan, Table

_PALETTE = [
    "#FFB347", "#77DD77", "#AEC6CF", "#C23B22", "#F49AC2", "#B39EB5",
    "#03C03C", "#779ECB", "#966FD6", "#FFD700", "#FF6961", "#CB99C9",
    "#CFCFC4", "#FDFD96", "#84B6F4", "#FDCAE1",
]

_EDGE_COLOR = {
    RelationshipKind.FAMILY: "#3CB371",
    RelationshipKind.PLUS_ONE: "#FFD700",
    RelationshipKind.FRIEND: "#84B6F4",
    RelationshipKind.COLLEAGUE: "#A9A9A9",
}


def generate_seating_map(
    plan: SeatingPlan,
    guests: Sequence[Guest],
    tables: Sequence[Table] = (),
    show_inter_table_edges: bool = False,
    canvas_size: Tuple[int, int] = (1600, 1000),
) -> str:
    """
    Build an interactive seating visualization.

    Parameters:
      plan: the seating plan to draw.
      guests: guests of the plan, with their relationship links.
      tables: optional table records, used for accessibility markers.
      show_inter_table_edges: include relationship edges between different tables if True.
      canvas_size: width, height in pixels for layout scaling.

    Returns:
      HTML string with embedded network.
    """
    graph = build_seating_graph(plan, guests, tables, show_inter_table_edges, canvas_size)

    net = Network(height="700px", width="100%", bgcolor="#111111", font_color="#EEEEEE")
    net.toggle_physics(False)  # positions are fixed
    net.from_nx(graph)
    return net.generate_html().replace("</body>", _legend_html() + "</body>")


def build_seating_graph(
    plan: SeatingPlan,
    guests: Sequence[Guest],
    tables: Sequence[Table] = (),
    show_inter_table_edges: bool = False,
    canvas_size: Tuple[int, int] = (1600, 1000),
) -> nx.Graph:
    """Graph with one positioned node per guest and one edge per relationship."""
    guest_by_id = {g.id: g for g in guests}
    accessible = {t.id for t in tables if t.accessible}
    assignments = plan.assignments
    table_to_ids = {t: members for t, members in plan.members_by_table().items() if members}

    width, height = canvas_size
    centers = _compute_table_centers(list(table_to_ids.keys()), width, height)
    table_color = {t: _PALETTE[i % len(_PALETTE)] for i, t in enumerate(plan.table_ids)}

    G = nx.Graph()
    for table, member_ids in table_to_ids.items():
        cx, cy = centers[table]
        coords = _circle_layout(cx, cy, 60 + 6 * len(member_ids), len(member_ids))
        for gid, (x, y) in zip(member_ids, coords):
            g = guest_by_id.get(gid)
            label = g.name if g and g.name else gid
            G.add_node(
                gid,
                label=label,
                title=_node_tooltip(label, table, g, table in accessible),
                color=table_color[table],
                table=table,
                x=x,
                y=y,
                physics=False,
                borderWidth=4 if g and g.needs_accessibility else 2,
                shape="dot",
                size=18,
            )

    for g in guests:
        for link in g.relationships:
            other = link.guest_id
            if other not in assignments or g.id not in assignments or G.has_edge(g.id, other):
                continue
            same_table = assignments[g.id] == assignments[other]
            if not same_table and not show_inter_table_edges:
                continue
            G.add_edge(
                g.id,
                other,
                color=_EDGE_COLOR.get(link.kind, "#A9A9A9"),
                width=3 if same_table else 1,
                label=link.kind.value,
                dashes=not same_table,
            )
    return G


def _compute_table_centers(tables: List[str], width: int, height: int) -> Dict[str, Tuple[int, int]]:
    """
    Place table centers on a grid inside the canvas area.
    """
    if not tables:
        return {}
    n = len(tables)
    cols = max(1, int(math.ceil(math.sqrt(n))))
    rows = int(math.ceil(n / cols))
    margin = 120
    step_x = max(1, width - 2 * margin) // cols
    step_y = max(1, height - 2 * margin) // rows

    centers: Dict[str, Tuple[int, int]] = {}
    for idx, table in enumerate(tables):
        r, c = divmod(idx, cols)
        centers[table] = (margin + c * step_x + step_x // 2, margin + r * step_y + step_y // 2)
    return centers


def _circle_layout(cx: int, cy: int, r: int, n: int) -> List[Tuple[int, int]]:
    pts = []
    for i in range(n):
        theta = 2 * math.pi * i / n
        pts.append((int(cx + r * math.cos(theta)), int(cy + r * math.sin(theta))))
    return pts


def _node_tooltip(name: str, table: str, guest, accessible_table: bool) -> str:
    side = guest.side.value if guest and guest.side else "n/a"
    age = guest.age if guest and guest.age else "n/a"
    needs = "Yes" if guest and guest.needs_accessibility else "No"
    return (
        f"<b>{name}</b><br>"
        f"Table: {table}{' (accessible)' if accessible_table else ''}<br>"
        f"Side: {side}<br>"
        f"Age: {age}<br>"
        f"Needs accessibility: {needs}"
    )


def _legend_html() -> str:
    css = """
    <style>
    .legend-box{
      position:absolute;right:12px;bottom:12px;
      background:#222;color:#eee;border:1px solid #444;border-radius:8px;
      padding:8px 12px;font-family:system-ui, -apple-system, Segoe UI, Roboto, Arial;font-size:12px;
      z-index:10;
    }
    .legend-swatch{display:inline-block;width:12px;height:12px;margin-right:6px;vertical-align:middle;border:1px solid #444;}
    </style>
    """
    rows = "".join(
        f'<div><span class="legend-swatch" style="background:{color}"></span>{kind.value}</div>'
        for kind, color in _EDGE_COLOR.items()
    )
    return f"""
    {css}
    <div class="legend-box">
      {rows}
      <div style="margin-top:6px;">node color: table</div>
      <div>thick border: needs accessibility</div>
      <div>dashed edge: seated apart</div>
    </div>
    """
