"""Class catalog: canonical names and which specs each class exposes."""

from __future__ import annotations

from .models import ActivityType, Spec

CLASSES: tuple[str, ...] = (
    "Guardian", "Warrior", "Ninja", "Kunoichi", "Sorceress", "Wizard", "Witch",
    "Ranger", "Berserker", "Tamer", "Valkyrie", "Musa", "Maehwa", "Dark Knight",
    "Striker", "Mystic", "Lahn", "Archer", "Shai", "Hashashin", "Nova", "Sage",
    "Corsair", "Drakania", "Scholar", "Wukong", "Deadeye",
)

# Classes that use Ascension instead of Succession.  Ascension is stored as
# the awakening spec.
ASCENSION_CLASSES = frozenset({"Archer", "Scholar", "Shai", "Wukong", "Deadeye"})


def _fold(name: str) -> str:
    return "".join(name.split()).lower()


_BY_FOLDED = {_fold(name): name for name in CLASSES}


def canonical_class(name: str) -> str | None:
    """Return the catalog spelling of ``name`` or ``None`` if unknown.

    Matching ignores case and whitespace so ``"darkknight"`` and
    ``"dark knight"`` both resolve to ``"Dark Knight"``.
    """
    return _BY_FOLDED.get(_fold(name))


def class_slug(name: str) -> str:
    """Filesystem-friendly class name."""
    return _fold(name)


def is_ascension_class(name: str) -> bool:
    return canonical_class(name) in ASCENSION_CLASSES


def available_specs(name: str) -> list[Spec]:
    if is_ascension_class(name):
        return [Spec.AWAKENING]
    return [Spec.SUCCESSION, Spec.AWAKENING]


def primary_spec(name: str) -> Spec:
    """Awakening for ascension classes, succession for everyone else."""
    return Spec.AWAKENING if is_ascension_class(name) else Spec.SUCCESSION


def format_spec(name: str, spec: Spec) -> str:
    # Ascension classes only have one spec, so it is not worth naming.
    if is_ascension_class(name) and spec is Spec.AWAKENING:
        return ""
    return spec.value.capitalize()


def guide_title(name: str, activity_type: ActivityType, spec: Spec) -> str:
    cls = canonical_class(name) or name
    spec_text = format_spec(name, spec)
    if spec_text:
        return f"{cls} {activity_type.value.upper()} - {spec_text}"
    return f"{cls} {activity_type.value.upper()} Guide"


def matching_classes(current: str, limit: int = 25) -> list[str]:
    """Catalog entries containing ``current``, for autocomplete."""
    needle = current.lower()
    return [name for name in CLASSES if needle in name.lower()][:limit]
