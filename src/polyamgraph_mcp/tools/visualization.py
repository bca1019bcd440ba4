"""
Network Graph Visualization Tool
Renders an assembled network graph to a PNG: people as labeled nodes,
connections as colored edges (solid for direct, dashed for second-degree).
"""

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend for MCP
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.lines import Line2D
from matplotlib.patches import Circle
from pathlib import Path
from typing import Dict, List, Optional

from ..constants import RELATIONSHIP_COLORS, DEFAULT_EDGE_COLOR

# Background and structural colors
BACKGROUND = '#0A1128'      # Deep space navy
LINES = '#E8E8E8'           # Soft white for labels
NODE_FILL = '#1B263B'       # Card color
ACCENT_GOLD = '#FFB703'     # Gold ring for the viewer

NODE_RADIUS = 28            # In layout units (layout is in screen pixels)

PRIVACY_BADGES = {
    'public': '(public)',
    'friends': '(friends)',
    'private': '(private)',
}


def _initials(profile: dict) -> str:
    name = profile.get('display_name') or profile.get('username') or '?'
    return ''.join(part[0] for part in name.split()).upper()


def _to_plot(position: dict) -> tuple:
    """Layout coordinates are screen pixels (y down); flip y for matplotlib."""
    return position['x'], -position['y']


def draw_edges(ax, edges: List[Dict], positions: Dict[str, tuple]):
    """Draw edges with relationship colors and labels at their midpoints."""
    for edge in edges:
        if edge['source'] not in positions or edge['target'] not in positions:
            continue
        start = np.array(positions[edge['source']])
        end = np.array(positions[edge['target']])
        style = edge.get('style', {})
        dashed = 'stroke_dasharray' in style

        ax.plot([start[0], end[0]], [start[1], end[1]],
                color=style.get('stroke', DEFAULT_EDGE_COLOR),
                linewidth=style.get('stroke_width', 2) * 1.5,
                linestyle='--' if dashed else '-',
                alpha=0.7 if dashed else 0.9,
                zorder=2)

        if edge.get('label'):
            mid = (start + end) / 2
            ax.text(mid[0], mid[1], edge['label'],
                    fontsize=8 if dashed else 10,
                    weight='normal' if dashed else 'bold',
                    ha='center', va='center', color=LINES,
                    bbox=dict(boxstyle='round,pad=0.2', facecolor=BACKGROUND,
                              edgecolor='none', alpha=0.8),
                    zorder=3)


def draw_nodes(ax, nodes: List[Dict], positions: Dict[str, tuple]):
    """Draw one circle per person; the viewer gets a gold ring."""
    for node in nodes:
        x, y = positions[node['id']]
        profile = node['data']['profile']
        is_current_user = node['data']['is_current_user']

        ring = ACCENT_GOLD if is_current_user else LINES
        ax.add_patch(Circle((x, y), NODE_RADIUS, facecolor=NODE_FILL,
                            edgecolor=ring, linewidth=3 if is_current_user else 1.5,
                            zorder=4))
        ax.text(x, y, _initials(profile), fontsize=12, weight='bold',
                ha='center', va='center', color=ring, zorder=5)

        name = profile.get('display_name') or profile.get('username', '')
        badge = PRIVACY_BADGES.get(profile.get('privacy_mode'), '')
        ax.text(x, y - NODE_RADIUS - 12, f"{name} {badge}".strip(),
                fontsize=10, ha='center', va='top', color=LINES, zorder=5)


def create_network_chart(graph: Dict[str, List[Dict]],
                         chart_title: str = "Polycule Network",
                         output_path: Optional[str] = None) -> str:
    """
    Create a network graph visualization and save to file.

    Args:
        graph: {"nodes": [...], "edges": [...]} from assemble_network_graph
        chart_title: Title for the chart
        output_path: Where to save the chart (default: network.png)

    Returns:
        Path to the saved chart image

    Raises:
        ValueError: If the graph has no nodes
    """
    nodes = graph.get('nodes', [])
    if not nodes:
        raise ValueError("Graph has no nodes to draw")
    if output_path is None:
        output_path = "network.png"

    positions = {node['id']: _to_plot(node['position']) for node in nodes}
    coords = np.array(list(positions.values()))
    margin = NODE_RADIUS * 3
    x_min, y_min = coords.min(axis=0) - margin
    x_max, y_max = coords.max(axis=0) + margin

    fig, ax = plt.subplots(1, 1, figsize=(12, 10), facecolor=BACKGROUND)
    ax.set_facecolor(BACKGROUND)
    ax.set_aspect('equal')
    ax.set_xlim(x_min, x_max)
    ax.set_ylim(y_min, y_max)
    ax.axis('off')

    # Back to front
    draw_edges(ax, graph.get('edges', []), positions)
    draw_nodes(ax, nodes, positions)

    plt.title(chart_title, fontsize=20, weight='bold',
              color=LINES, pad=20, family='sans-serif')

    handles = [
        Line2D([0], [0], color=color, linewidth=3, label=rel_type)
        for rel_type, color in RELATIONSHIP_COLORS.items()
    ]
    handles.append(Line2D([0], [0], color=LINES, linewidth=1.5,
                          linestyle='--', label='second-degree'))
    legend = ax.legend(handles=handles, loc='upper right', fontsize=10,
                       frameon=True, fancybox=True)
    legend.get_frame().set_facecolor(BACKGROUND)
    legend.get_frame().set_edgecolor(ACCENT_GOLD)
    legend.get_frame().set_alpha(0.9)
    for text in legend.get_texts():
        text.set_color(LINES)

    plt.tight_layout()

    output_path = Path(output_path).expanduser().resolve()
    try:
        plt.savefig(output_path, dpi=200, bbox_inches='tight',
                    facecolor=BACKGROUND, edgecolor='none')
    finally:
        plt.close(fig)

    return str(output_path)
