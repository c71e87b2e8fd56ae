"""
Add-on Formatter Service

Compact one-line summaries of add-ons and ingredient lines for cart rows,
order confirmations and the kitchen ticket.
"""

from typing import Iterable

from models.cart import LineIngredientDTO, GroupedLineDTO


class AddonFormatterService:
    """Formatting of add-on names and ingredient lines"""

    @staticmethod
    def _truncate(parts: list[str], max_chars: int) -> str:
        """
        Join parts with ", " while the result fits max_chars.

        Parts that don't fit are summarized as "+N more".
        """
        text = ""
        shown = 0
        for part in parts:
            candidate = f"{text}, {part}" if text else part
            if len(candidate) > max_chars:
                break
            text = candidate
            shown += 1

        remaining = len(parts) - shown
        if remaining <= 0:
            return text
        return f"{text} +{remaining} more" if text else f"+{remaining} more"

    @staticmethod
    def format_addon_list(names: Iterable[str], max_chars: int = 70) -> str:
        """
        Format add-on names, collapsing repeats case-insensitively.

        Examples:
            >>> AddonFormatterService.format_addon_list(["Oats", "oats", "Chia"])
            'Oats (x2), Chia'
            >>> AddonFormatterService.format_addon_list([])
            'none'
        """
        counts: dict[str, list] = {}
        for name in names:
            cleaned = (name or "").strip()
            if not cleaned:
                continue
            entry = counts.setdefault(cleaned.lower(), [cleaned, 0])
            entry[1] += 1

        if not counts:
            return "none"

        merged = [f"{label} (x{count})" if count > 1 else label for label, count in counts.values()]
        return AddonFormatterService._truncate(merged, max_chars)

    @staticmethod
    def group_ingredient_lines(lines: Iterable[LineIngredientDTO]) -> list[GroupedLineDTO]:
        """Merge lines by (name, unit) in first-seen order, summing amounts."""
        groups: dict[tuple[str, str], GroupedLineDTO] = {}
        for line in lines:
            name = (line.name or "Unknown").strip()
            unit = (line.unit or "").strip()
            key = (name.lower(), unit.lower())
            group = groups.get(key)
            if group is None:
                groups[key] = GroupedLineDTO(name=name, amount=line.amount or 0, unit=unit)
            else:
                group.amount += line.amount or 0
                group.count += 1
        return list(groups.values())

    @staticmethod
    def format_grouped_lines(groups: list[GroupedLineDTO], max_chars: int = 80) -> str:
        """
        Examples:
            "Peanut Butter (x2) - 4 tbsp, Milk - 250 ml"
        """
        if not groups:
            return "none"

        parts = []
        for group in groups:
            count = f" (x{group.count})" if group.count > 1 else ""
            amount = f" - {group.amount:g} {group.unit}" if group.unit else ""
            parts.append(f"{group.name}{count}{amount}")
        return AddonFormatterService._truncate(parts, max_chars)
