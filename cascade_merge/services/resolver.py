"""Cascade resolution from a repository's branch list and branching model."""

from __future__ import annotations

from collections.abc import Iterable

from cascade_merge.models.cascade import Cascade, CascadeOptions


def is_cascade_candidate(destination: str, options: CascadeOptions) -> bool:
    """Whether a merge into ``destination`` should be cascaded at all.

    Merges into the development branch itself are already at the tip.
    """
    return not (
        destination.startswith(options.development_name)
        and not destination.startswith(options.release_prefix)
    )


def build_cascade(branch_names: Iterable[str], options: CascadeOptions) -> Cascade:
    """Build the version-ordered cascade of release branches plus the development branch."""
    cascade = Cascade()
    for name in sorted(branch_names):
        if name.startswith(options.release_prefix) or name == options.development_name:
            cascade.append_semver(name, options.development_name)
    return cascade
