"""Node type colors."""

from mindmap.models import UNKNOWN_TYPE

NODE_COLORS: dict[str, str] = {
    "Belief": "#4ade80",
    "Position": "#60a5fa",
    "Thesis": "#f59e0b",
    "Concept": "#a78bfa",
    "Project": "#f472b6",
    "Task": "#fb923c",
    "Feature": "#34d399",
    "Decision": "#fbbf24",
    "Strategy": "#f87171",
    "Principle": "#38bdf8",
    "Philosophy": "#818cf8",
    "Insight": "#e879f9",
    "Experience": "#22d3ee",
    "Question": "#fcd34d",
    "Synthesis": "#a3e635",
    "Agent": "#4ade80",
    "Person": "#60a5fa",
    "Token": "#fbbf24",
    "Platform": "#fb923c",
    "Method": "#34d399",
    "Interaction": "#67e8f9",
    "Response": "#c084fc",
    "Blocker": "#ef4444",
    "Architecture": "#8b5cf6",
    "Milestone": "#10b981",
    "Encounter": "#f472b6",
    "Lesson": "#facc15",
    "Evolution": "#2dd4bf",
    "Evidence": "#38bdf8",
    "Counterpoint": "#f87171",
    "Identity": "#4ade80",
    "Status": "#94a3b8",
    "Reference": "#cbd5e1",
    UNKNOWN_TYPE: "#888888",
}


def color_for(node_type: str | None) -> str:
    """Color for a node type; unknown types share the fallback color."""
    return NODE_COLORS.get(node_type or UNKNOWN_TYPE, NODE_COLORS[UNKNOWN_TYPE])
