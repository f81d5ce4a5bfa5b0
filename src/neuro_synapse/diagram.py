"""
Workflow diagram data: graph builders and a layered layout.

The layout is a Kahn-style levelling: roots form level 0, a node joins the
level after its last predecessor, and nodes stranded by a cycle are appended
to the final level. Each level is centered against the widest one.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from .models import DiagramEdge, DiagramNode, WorkflowDiagramData

Position = Tuple[float, float]

AGENT_LABELS = {
    "execute_web_search_task": "Web Search Executor",
    "execute_image_generation_task": "Image Executor",
    "execute_code_generation_task": "Code Executor",
    "execute_text_synthesis_task": "Text Executor",
}


def layout_diagram(
    data: Union[WorkflowDiagramData, Mapping[str, Any]],
    node_width: float = 160,
    node_height: float = 112,
    h_gap: float = 60,
    v_gap: float = 70,
    padding: float = 30,
) -> Dict[str, Position]:
    diagram = WorkflowDiagramData.model_validate(data)
    if not diagram.nodes:
        return {}

    node_ids = [n.id for n in diagram.nodes]
    known = set(node_ids)
    graph: Dict[str, List[str]] = {nid: [] for nid in node_ids}
    in_degree: Dict[str, int] = {nid: 0 for nid in node_ids}
    for edge in diagram.edges:
        if edge.source in graph and edge.target in known:
            graph[edge.source].append(edge.target)
            in_degree[edge.target] += 1

    levels: List[List[str]] = []
    queue = [nid for nid in node_ids if in_degree[nid] == 0]
    while queue:
        levels.append(list(queue))
        next_queue: List[str] = []
        for u in queue:
            for v in graph[u]:
                in_degree[v] -= 1
                if in_degree[v] == 0:
                    next_queue.append(v)
        queue = next_queue

    placed = {nid for level in levels for nid in level}
    stranded = [nid for nid in node_ids if nid not in placed]
    if stranded:
        if not levels:
            levels.append([])
        levels[-1].extend(stranded)

    widest = max(len(level) for level in levels)
    total_width = widest * (node_width + h_gap) - h_gap
    positions: Dict[str, Position] = {}
    y = padding
    for level in levels:
        level_width = len(level) * (node_width + h_gap) - h_gap
        x = padding + (total_width - level_width) / 2
        for nid in level:
            positions[nid] = (x, y)
            x += node_width + h_gap
        y += node_height + v_gap
    return positions


def diagram_canvas_size(positions: Mapping[str, Position], node_width: float = 160,
                        node_height: float = 112, margin: float = 40) -> Tuple[float, float]:
    xs = [p[0] for p in positions.values()]
    ys = [p[1] for p in positions.values()]
    min_x = min([0.0, *xs])
    min_y = min([0.0, *ys])
    width = max([800.0, *xs]) + node_width + margin - min_x
    height = max([600.0, *ys]) + node_height + margin - min_y
    return width, height


def _edge(source: str, target: str, label: str | None = None) -> DiagramEdge:
    return DiagramEdge(id=f"e_{source}_{target}", source=source, target=target, animated=True, label=label)


def _field(task: Any, name: str) -> Any:
    if isinstance(task, Mapping):
        return task.get(name)
    return getattr(task, name, None)


def build_diagram_from_tasks(tasks: Iterable[Any]) -> WorkflowDiagramData:
    """Chain input -> each task in order -> output."""
    nodes = [DiagramNode(id="input_prompt", label="User Prompt", type="input")]
    edges: List[DiagramEdge] = []
    prev = "input_prompt"
    for i, task in enumerate(tasks):
        nid = _field(task, "id") or _field(task, "taskReferenceName") or f"task_{i}"
        label = _field(task, "assignedAgent") or _field(task, "taskDefName") or nid
        nodes.append(DiagramNode(id=nid, label=label, type="agent"))
        edges.append(_edge(prev, nid))
        prev = nid
    nodes.append(DiagramNode(id="final_output", label="Final Output", type="output"))
    edges.append(_edge(prev, "final_output"))
    return WorkflowDiagramData(nodes=nodes, edges=edges)


def build_diagram_from_plan(plan: List[Dict[str, Any]]) -> WorkflowDiagramData:
    """
    input -> analyzer -> planner -> executors -> ethical -> synthesizer -> output.

    Executors fan out from the planner unless they declare `dependsOn`, in
    which case they hang off their dependencies. Executors nothing depends on
    feed the ethical check.
    """
    nodes = [
        DiagramNode(id="input_prompt", label="User Prompt", type="input"),
        DiagramNode(id="analyzer", label="Analyzer Agent", type="agent"),
        DiagramNode(id="planner", label="Planner Agent", type="agent"),
    ]
    edges = [_edge("input_prompt", "analyzer"), _edge("analyzer", "planner")]

    refs = [entry["taskReferenceName"] for entry in plan]
    has_dependents = set()
    for entry in plan:
        ref = entry["taskReferenceName"]
        nodes.append(DiagramNode(id=ref, label=AGENT_LABELS.get(entry.get("name"), entry.get("name") or ref),
                                 type="agent"))
        deps = [d for d in (entry.get("input") or {}).get("dependsOn") or [] if d in refs]
        if deps:
            for dep in deps:
                edges.append(_edge(dep, ref, label="depends on"))
                has_dependents.add(dep)
        else:
            edges.append(_edge("planner", ref))

    nodes.extend([
        DiagramNode(id="ethical_checker", label="Ethical Check", type="process"),
        DiagramNode(id="synthesizer", label="Result Synthesizer", type="agent"),
        DiagramNode(id="final_output", label="Final Output", type="output"),
    ])
    leaves = [ref for ref in refs if ref not in has_dependents] or ["planner"]
    edges.extend(_edge(ref, "ethical_checker") for ref in leaves)
    edges.extend([_edge("ethical_checker", "synthesizer"), _edge("synthesizer", "final_output")])
    return WorkflowDiagramData(nodes=nodes, edges=edges)
