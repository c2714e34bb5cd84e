"""Rule-based subject domain classification.

The classifier is a pure function of the text it is given: no model call, no
state. Rules are data. Each ``DomainRule`` lists keywords and structural
patterns for one domain, and rules are evaluated in table order so the first
satisfied rule wins. To support a new domain, append a rule.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Tuple

from ..data.models import SubjectDomain, SubjectRef, TopicRef

# Common element symbols, two-letter symbols first so "Cl" wins over "C"
_ELEMENTS = (
    "He|Li|Be|Ne|Na|Mg|Al|Si|Cl|Ar|Ca|Fe|Cu|Zn|Ag|Au|Br|Pb|Hg|Mn|Ba|Sn|Ni|Co|Cr"
    "|H|B|C|N|O|F|P|S|K|I"
)


@dataclass(frozen=True)
class DomainRule:
    """Keyword and pattern predicate for one subject domain.

    Attributes:
        domain: Domain assigned when the rule matches
        keywords: Whole-word keywords matched against the lower-cased text
        patterns: Structural patterns matched against the original text
        min_keyword_hits: Distinct keyword hits needed to satisfy the rule
    """

    domain: SubjectDomain
    keywords: Tuple[str, ...]
    patterns: Tuple[Pattern[str], ...] = ()
    min_keyword_hits: int = 1
    _keyword_patterns: Tuple[Tuple[str, Pattern[str]], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.min_keyword_hits < 1:
            raise ValueError("min_keyword_hits must be at least 1")
        # Whole word with an optional plural suffix
        compiled = tuple(
            (kw, re.compile(rf"\b{re.escape(kw)}(?:s|es)?\b")) for kw in self.keywords
        )
        object.__setattr__(self, "_keyword_patterns", compiled)

    def keyword_hits(self, lowered_text: str) -> List[str]:
        """Return the keywords present in ``lowered_text``."""
        return [kw for kw, pattern in self._keyword_patterns if pattern.search(lowered_text)]

    def pattern_hits(self, text: str) -> List[str]:
        """Return the structural patterns that match ``text``."""
        return [p.pattern for p in self.patterns if p.search(text)]

    def matches(self, text: str, lowered_text: str) -> bool:
        """Check whether the rule is satisfied by the text."""
        if any(p.search(text) for p in self.patterns):
            return True
        return len(self.keyword_hits(lowered_text)) >= self.min_keyword_hits


# Rule order is the classification priority.
DOMAIN_RULES: Tuple[DomainRule, ...] = (
    DomainRule(
        domain=SubjectDomain.MATHEMATICS,
        keywords=(
            "math",
            "maths",
            "mathematics",
            "arithmetic",
            "algebra",
            "geometry",
            "calculus",
            "trigonometry",
            "subtraction",
            "multiplication",
            "multiply",
            "subtract",
            "quotient",
        ),
        patterns=(
            # a + b, a * b, a × b, a ÷ b
            re.compile(r"\d+(?:\.\d+)?\s*[+*×÷]\s*\d+"),
            # a - b and a / b need spacing or a trailing "=", so that year
            # ranges (1914-1918) and dates (12/05/2020) are not arithmetic
            re.compile(r"\d+(?:\.\d+)?\s+[-−/]\s+\d+"),
            re.compile(r"\d+(?:\.\d+)?\s*[-−/]\s*\d+(?:\.\d+)?\s*="),
        ),
    ),
    DomainRule(
        domain=SubjectDomain.LITERATURE,
        keywords=(
            "literature",
            "novel",
            "poem",
            "poetry",
            "poet",
            "stanza",
            "verse",
            "protagonist",
            "narrator",
            "metaphor",
            "simile",
            "literary",
            "shakespeare",
            "sonnet",
            "playwright",
            "fiction",
        ),
        patterns=(
            # Quoted dialogue followed by a speech verb
            re.compile(
                r"[\"“][^\"”\n]{2,}[\"”]\s*,?\s*(?:\w+\s+)?"
                r"(?:said|asked|replied|cried|whispered|shouted|exclaimed)\b",
                re.IGNORECASE,
            ),
        ),
    ),
    DomainRule(
        domain=SubjectDomain.COMPUTING,
        keywords=(
            "programming",
            "algorithm",
            "python",
            "javascript",
            "java",
            "computer",
            "software",
            "compiler",
            "database",
            "source code",
            "computing",
            "recursion",
        ),
        patterns=(
            re.compile(r"\bdef\s+\w+\s*\("),
            re.compile(r"\bfunction\s+\w+\s*\("),
            re.compile(r"\b(?:print|console\.log|printf)\s*\("),
            re.compile(r"\b(?:int|var|let|const)\s+\w+\s*=[^=]"),
            re.compile(r"\bfor\s*\([^)]*;[^)]*;"),
            re.compile(r"#include\s*<"),
        ),
    ),
    DomainRule(
        domain=SubjectDomain.CHEMISTRY,
        keywords=(
            "chemistry",
            "chemical",
            "molecule",
            "molecular",
            "atom",
            "atomic",
            "compound",
            "reaction",
            "acid",
            "periodic table",
            "electron",
            "oxidation",
            "molar",
            "covalent",
            "ionic",
        ),
        patterns=(
            # Formula with at least two element tokens and one digit: H2O, CO2
            re.compile(rf"\b(?=[A-Za-z]*\d)(?:(?:{_ELEMENTS})\d*){{2,}}\b"),
        ),
    ),
    DomainRule(
        domain=SubjectDomain.PHYSICS,
        keywords=(
            "physics",
            "velocity",
            "acceleration",
            "momentum",
            "gravity",
            "gravitational",
            "newton",
            "friction",
            "kinetic",
            "potential energy",
            "voltage",
            "wavelength",
            "thermodynamics",
            "inertia",
        ),
        patterns=(
            re.compile(r"\d+(?:\.\d+)?\s?(?:m/s²|m/s\^?2|m/s|km/h|Hz|kg|N|J|W|V)\b"),
            re.compile(r"\bF\s*=\s*m\s*[·*×]?\s*a\b"),
            re.compile(r"\bE\s*=\s*m\s*c\s*(?:²|\^2|2)"),
        ),
    ),
    DomainRule(
        domain=SubjectDomain.HISTORY,
        keywords=(
            "history",
            "historical",
            "war",
            "revolution",
            "empire",
            "century",
            "dynasty",
            "treaty",
            "ancient",
            "medieval",
            "civilization",
            "colonial",
            "monarchy",
        ),
        patterns=(
            # Years in context: "in 1914", "1914-1918", "the 1800s", "500 BC"
            re.compile(
                r"\b(?:in|by|during|since|until|from|around|after|before)\s+"
                r"(?:1[0-9]{3}|20[0-9]{2})\b",
                re.IGNORECASE,
            ),
            re.compile(r"\b(?:1[0-9]{3}|20[0-9]{2})\s*[-–]\s*(?:1[0-9]{3}|20[0-9]{2})\b"),
            re.compile(r"\b1[0-9]{2}0s\b"),
            re.compile(r"\b\d{1,4}\s*(?:BC|BCE|AD|CE)\b"),
        ),
    ),
    DomainRule(
        domain=SubjectDomain.BIOLOGY,
        keywords=(
            "biology",
            "cell",
            "organism",
            "photosynthesis",
            "gene",
            "species",
            "evolution",
            "ecosystem",
            "protein",
            "enzyme",
            "mitosis",
            "meiosis",
            "bacteria",
        ),
        patterns=(
            re.compile(r"\b(?:DNA|RNA|ATP)\b"),
        ),
    ),
)


def _combined_text(
    content: str, subject: Optional[SubjectRef], topic: Optional[TopicRef]
) -> str:
    parts = [content or ""]
    if subject is not None and subject.name:
        parts.append(subject.name)
    if topic is not None and topic.name:
        parts.append(topic.name)
    return " ".join(parts)


class DomainClassifier:
    """Classify study material into a subject domain using ``DOMAIN_RULES``."""

    def __init__(self, rules: Tuple[DomainRule, ...] = DOMAIN_RULES):
        self.rules = rules

    def classify(
        self,
        content: str,
        subject: Optional[SubjectRef] = None,
        topic: Optional[TopicRef] = None,
    ) -> SubjectDomain:
        """Return the first domain whose rule matches, or general.

        Args:
            content: Study material text
            subject: Subject reference; its name is part of the classified text
            topic: Topic reference; its name is part of the classified text

        Returns:
            Subject domain
        """
        text = _combined_text(content, subject, topic)
        lowered = text.lower()
        for rule in self.rules:
            if rule.matches(text, lowered):
                return rule.domain
        return SubjectDomain.GENERAL

    def explain(
        self,
        content: str,
        subject: Optional[SubjectRef] = None,
        topic: Optional[TopicRef] = None,
    ) -> Dict[str, Dict[str, List[str]]]:
        """Report keyword and pattern hits for every rule.

        Returns:
            Mapping of domain value to ``{"keywords": [...], "patterns": [...]}``
        """
        text = _combined_text(content, subject, topic)
        lowered = text.lower()
        return {
            rule.domain.value: {
                "keywords": rule.keyword_hits(lowered),
                "patterns": rule.pattern_hits(text),
            }
            for rule in self.rules
        }
