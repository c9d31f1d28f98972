from collections import defaultdict
from datetime import date
from typing import Dict, List, Set, Tuple

from resplan.engine.intervals import tasks_overlap


def build_overlap_graph(spans: List[Tuple[str, Tuple[date, date]]]) -> Dict[str, Set[str]]:
    """Edges join tasks whose inclusive date ranges intersect."""
    graph: Dict[str, Set[str]] = defaultdict(set)
    ordered = sorted(spans, key=lambda item: item[1][0])
    for i, (t1, span1) in enumerate(ordered):
        for t2, span2 in ordered[i + 1:]:
            if span2[0] > span1[1]:
                break  # sorted by start: nothing later can touch t1
            if tasks_overlap(span1, span2):
                graph[t1].add(t2)
                graph[t2].add(t1)
    return graph
