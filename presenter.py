"""Markdown rendering of session snapshots.

The presenter is read-only: it receives a SessionState and renders whatever
phases the session has produced so far. It never calls the pipeline.
"""

from datetime import datetime

from models.analysis import PresentAnalysis
from models.news import NewsItem
from models.poetic import PoeticArtifact
from models.prediction import FuturePrediction
from timeline import Job, Phase, SessionState

PHASE_LABELS = {
    Phase.INPUT: "Input",
    Phase.PAST: "Past",
    Phase.PRESENT: "Present",
    Phase.FUTURE: "Future",
}


def _render_nav(state: SessionState) -> str:
    """Phase bar: current phase in brackets, locked phases struck through."""
    cells = []
    for phase in (Phase.PAST, Phase.PRESENT, Phase.FUTURE):
        label = PHASE_LABELS[phase]
        if phase is state.phase:
            cells.append(f"[{label}]")
        elif state.is_enabled(phase):
            cells.append(label)
        else:
            cells.append(f"~~{label}~~")
    return " | ".join(cells)


def _render_item(item: NewsItem) -> list[str]:
    lines = [f"### {item.display_title}", ""]
    meta = [item.source]
    if item.date:
        meta.append(item.date)
    if item.is_translated:
        meta.append(f"translated from {item.original_language}")
    lines.append(f"*{' · '.join(meta)}*")
    lines.extend(["", item.display_summary, "", f"[Read source]({item.url})", ""])
    return lines


def render_past(state: SessionState, days: int = 30) -> list[str]:
    lines = ["## The Past", "", f"Echoes from the last {days} days regarding **{state.keyword}**.", ""]
    if state.loading.searching:
        lines.append("_Gathering echoes..._")
        return lines
    for item in state.news_items:
        lines.extend(_render_item(item))
    return lines


def render_present(analysis: PresentAnalysis) -> list[str]:
    lines = [
        "## The Present",
        "",
        f"### {analysis.summary_title}",
        "",
        f"**Sentiment:** {analysis.sentiment_score}/100 ({analysis.sentiment_label})",
        "",
        analysis.overview,
        "",
        "#### Analysis",
        "",
        analysis.detailed_analysis,
    ]
    if analysis.key_themes:
        lines.extend(["", "#### Key Themes", ""])
        for theme in analysis.key_themes:
            icon = f"{theme.icon} " if theme.icon else ""
            lines.append(f"- {icon}**{theme.title}**: {theme.description}")
    lines.append("")
    return lines


def render_future(prediction: FuturePrediction) -> list[str]:
    lines = [
        "## The Future",
        "",
        f"### {prediction.scenario_title}",
        "",
        f"**Probability:** {prediction.probability}",
        "",
        prediction.description,
    ]
    if prediction.near_term_events:
        lines.extend(["", "#### Next 12 Months", ""])
        lines.extend(f"- **{e.timeframe}**: {e.event}" for e in prediction.near_term_events)
    lines.extend([
        "",
        f"#### Distant Vision: {prediction.distant_vision.title}",
        "",
        prediction.distant_vision.description,
        "",
    ])
    return lines


def render_artifact(artifact: PoeticArtifact, image_path: str | None = None) -> list[str]:
    """Render the share card. Inline images are referenced by path when saved."""
    lines = ["## Time Poem", ""]
    lines.extend(f"> {line}" for line in artifact.poem.splitlines() if line.strip())
    lines.append("")
    if image_path:
        lines.append(f"![time poem]({image_path})")
    elif artifact.is_fallback_image:
        lines.append(f"![time poem]({artifact.image_url})")
    else:
        lines.append(f"_(inline {artifact.image_mime_type} image, {len(artifact.image_data)} bytes)_")
    lines.append("")
    return lines


def render_snapshot(state: SessionState, days: int = 30, image_path: str | None = None) -> str:
    """Render everything a session has produced as one markdown document.

    Args:
        state: Session snapshot
        days: Search window shown in the past heading
        image_path: Where the share card image was saved, if it was

    Returns:
        Markdown text
    """
    if state.phase is Phase.INPUT and not state.keyword:
        return "# Time Poem\n\nEnter a keyword to see its past, present and future."

    generated_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        f"# Time Poem: {state.keyword}",
        "",
        f"**Generated:** {generated_str}",
        "",
        _render_nav(state),
        "",
    ]
    lines.extend(render_past(state, days=days))

    if state.present_analysis:
        lines.extend(render_present(state.present_analysis))
    elif state.loading.analyzing:
        lines.extend(["## The Present", "", "_Analyzing the present..._", ""])
    elif error := state.error_for(Job.PRESENT_ANALYSIS):
        lines.extend(["## The Present", "", f"_Analysis failed ({error}). Open the Present phase again to retry._", ""])

    if state.future_prediction:
        lines.extend(render_future(state.future_prediction))
    elif state.loading.predicting:
        lines.extend(["## The Future", "", "_Reading the stars..._", ""])
    elif error := state.error_for(Job.FUTURE_PREDICTION):
        lines.extend(["## The Future", "", f"_Prediction failed ({error}). Open the Future phase again to retry._", ""])

    if state.poetic_artifact:
        lines.extend(render_artifact(state.poetic_artifact, image_path=image_path))

    return "\n".join(lines).rstrip() + "\n"
