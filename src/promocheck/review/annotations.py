"""Label annotation for request embeds.

A verdict is recorded by prefixing the field label with a marker emoji,
e.g. ``"✅ Имя Фамилия | Static ID"``. A label that already starts with any
marker is left alone, which makes repeated review runs idempotent.
"""

from __future__ import annotations

from typing import Dict, Mapping

from promocheck.datatypes.review_datatypes import FieldKind, RequestPanel, Verdict

PASS_MARKER = "✅"
FAIL_MARKER = "❌"
UNCERTAIN_MARKER = "⚠️"

MARKERS = (PASS_MARKER, FAIL_MARKER, UNCERTAIN_MARKER)

VERDICT_MARKERS: Dict[Verdict, str] = {
    Verdict.PASS: PASS_MARKER,
    Verdict.FAIL: FAIL_MARKER,
    Verdict.INDETERMINATE: UNCERTAIN_MARKER,
}

# Role grants routinely lag behind approvals, so a missing rank role is only a warning
MARKER_OVERRIDES: Dict[tuple[FieldKind, Verdict], str] = {
    (FieldKind.RANK, Verdict.FAIL): UNCERTAIN_MARKER,
}


def marker_for(kind: FieldKind, verdict: Verdict) -> str:
    return MARKER_OVERRIDES.get((kind, verdict), VERDICT_MARKERS[verdict])


def is_annotated(label: str) -> bool:
    """Return True if the label already carries a verdict marker."""
    return label.startswith(MARKERS)


def annotate_label(label: str, kind: FieldKind, verdict: Verdict) -> str:
    return f"{marker_for(kind, verdict)} {label}"


def plan_annotations(
    panel: RequestPanel,
    field_indexes: Mapping[FieldKind, int],
    verdicts: Mapping[FieldKind, Verdict],
) -> Dict[int, str]:
    """
    Work out which labels change for a set of verdicts.

    Args:
        panel: The request panel as currently stored.
        field_indexes: Where each known field sits in ``panel.fields``.
        verdicts: Verdicts computed in this run. Kinds without a verdict are
            left untouched.

    Returns:
        Mapping of field index to new label, empty when nothing changes.
    """
    plan: Dict[int, str] = {}
    for kind, verdict in verdicts.items():
        index = field_indexes.get(kind)
        if index is None:
            continue
        label = panel.fields[index].name
        if is_annotated(label):
            continue
        plan[index] = annotate_label(label, kind, verdict)
    return plan


def apply_annotations(panel: RequestPanel, plan: Mapping[int, str]) -> RequestPanel:
    """Return the panel with every planned label rewritten in one step."""
    if not plan:
        return panel
    return panel.with_field_names(plan)
