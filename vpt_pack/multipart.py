"""Conversion of ``multipart`` blockstates into plain variants.

Every combination of the attribute values mentioned in the rule conditions
becomes one variant key. Combinations that enable the same set of rules
share a single merged model.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

import itertools
import logging
import re

from .context import PipelineContext
from .merge import merge_models
from .model import ModelReference

log = logging.getLogger(__name__)

Case = Mapping[str, Any]

_NUMERIC = re.compile(r"^[+-]?\d")


def _cases(when: Mapping[str, Any]) -> list[Case]:
    cases = when.get("OR")
    if isinstance(cases, list):
        return cases
    return [when]


def _values(raw: Any) -> list[str]:
    if isinstance(raw, bool):
        return ["true" if raw else "false"]
    return str(raw).split("|")


def collect_conditions(rules: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Value domain of every attribute mentioned in the rules' conditions.

    A ``true`` value also admits ``false`` and a numeric value also admits
    ``0``, the game's default for such properties. ``AND`` groups are not
    supported and are skipped.
    """

    domains: dict[str, list[str]] = {}

    def add(domain: list[str], value: str) -> None:
        if value not in domain:
            domain.append(value)

    for rule in rules:
        when = rule.get("when")
        if not when:
            continue
        for case in _cases(when):
            for key, raw in case.items():
                if key == "AND":
                    continue
                domain = domains.setdefault(key, [])
                for value in _values(raw):
                    if value == "true":
                        add(domain, "false")
                    if _NUMERIC.match(value):
                        add(domain, "0")
                    add(domain, value)

    return domains


def case_matches(combination: Mapping[str, str], case: Case) -> bool:
    for key, raw in case.items():
        if key == "AND" or key not in combination:
            continue
        if combination[key] not in _values(raw):
            return False
    return True


def rule_applies(when: Optional[Mapping[str, Any]], combination: Mapping[str, str]) -> bool:
    if not when:
        return True
    return any(case_matches(combination, case) for case in _cases(when))


def expand_multipart(name: str, document: Mapping[str, Any], context: PipelineContext) -> dict[str, Any]:
    """Turn a multipart blockstate into variants backed by merged generated models."""

    rules = list(document.get("multipart") or [])
    parsed = [(rule.get("when"), ModelReference.alternatives(rule["apply"])) for rule in rules]

    domains = collect_conditions(rules)
    attributes = list(domains)
    combination_count = 1
    for values in domains.values():
        combination_count *= len(values)
    log.debug("%s: %d rules, %d combinations", name, len(rules), combination_count)

    generated: dict[str, Optional[ModelReference]] = {}
    variants: dict[str, Any] = {}

    for values in itertools.product(*(domains[attr] for attr in attributes)):
        combination = dict(zip(attributes, values))

        bits: list[str] = []
        used: list[ModelReference] = []
        for when, references in parsed:
            if rule_applies(when, combination):
                bits.append("1")
                if references:
                    used.append(references[0])
            else:
                bits.append("0")

        if not used:
            continue

        key = "".join(bits)
        if key not in generated:
            rotated = [model for model in (context.rotate(ref) for ref in used) if model is not None]
            merged = merge_models(rotated) if rotated else None
            if merged is None or not merged.elements:
                generated[key] = None
            else:
                count = sum(1 for ref in generated.values() if ref is not None)
                generated[key] = context.add_generated(f"{name}_generated_model_{count}", merged)

        reference = generated[key]
        if reference is None:
            continue
        variant_key = ",".join(f"{attr}={value}" for attr, value in combination.items())
        variants[variant_key] = reference.to_json()

    return {"variants": variants}
