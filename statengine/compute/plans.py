from __future__ import annotations

from typing import Any, Mapping, Optional

from statengine.analysis.test_suggestion import VariableType, infer_variable_types


def column_profile_plan(
    columns: Mapping[str, Any],
    bin_count: Optional[int] = 10,
    alpha: Optional[float] = None,
) -> list[dict[str, Any]]:
    # Per column: descriptives + normality for numeric, frequency table for categorical.
    types = infer_variable_types(columns)
    plan: list[dict[str, Any]] = []
    for name, values in columns.items():
        if types[str(name)] == VariableType.NUMERIC:
            plan.append({
                "procedure": "descriptive_statistics",
                "params": {"data": values, "options": {"bin_count": bin_count}},
            })
            plan.append({
                "procedure": "normality_test",
                "params": {"data": values, "options": {"alpha": alpha}},
            })
        else:
            plan.append({
                "procedure": "frequency_analysis",
                "params": {"data": values},
            })
    return plan


def group_comparison_plan(
    groups: Mapping[str, Any],
    alpha: Optional[float] = None,
) -> list[dict[str, Any]]:
    # Parametric and rank-based comparison of the same groups.
    options = {"alpha": alpha}
    labels = list(groups.keys())
    if len(labels) == 2:
        first, second = groups[labels[0]], groups[labels[1]]
        return [
            {"procedure": "independent_t_test", "params": {"data1": first, "data2": second, "options": options}},
            {"procedure": "mann_whitney_u", "params": {"data1": first, "data2": second, "options": options}},
        ]
    return [
        {"procedure": "one_way_anova",
         "params": {"groups": groups, "options": {"alpha": alpha, "post_hoc": "tukey"}}},
        {"procedure": "kruskal_wallis", "params": {"groups": groups, "options": options}},
    ]
