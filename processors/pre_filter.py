from models.candidate import GatheredEvent
from models.results import PreFilterResult, RejectedEvent
from typing import List, Optional, Tuple, Pattern
import logging
import re

logger = logging.getLogger(__name__)

NO_SIGNAL_REASON = "no AI safety signal found in title, description, or source"

# Community vocabulary that rarely appears outside AI safety. Substring match.
SAFETY_PHRASES = [
    # Core AI safety terms
    "ai safety", "ai alignment", "alignment research", "alignment problem",
    "alignment tax", "aligned ai", "misaligned ai", "misalignment", "ai risk",
    "ai risks", "agi safety", "agi risk", "safety research",
    # Existential / catastrophic risk
    "existential risk", "xrisk", "global catastrophic risk", "catastrophic ai",
    "ai catastrophe", "extinction risk", "human extinction", "ai doom",
    "ai existential", "existential threat", "civilizational risk",
    # Technical safety concepts
    "interpretability", "mechanistic interpretability", "mech interp",
    "scalable oversight", "reward hacking", "reward misspecification",
    "goal misgeneralization", "inner alignment", "outer alignment",
    "mesa-optimizer", "mesa optimizer", "deceptive alignment", "corrigibility",
    "corrigible", "value alignment", "value loading", "ai control",
    "ai containment", "instrumental convergence", "power seeking",
    "treacherous turn", "specification gaming", "goodhart",
    "eliciting latent knowledge", "iterated amplification", "constitutional ai",
    "rlhf safety", "red teaming ai", "adversarial robustness",
    "distributional shift", "out of distribution", "tool ai", "oracle ai",
    "ai boxing", "wireheading", "utility function", "paperclip maximizer",
    "paperclip", "orthogonality thesis", "convergent instrumental",
    "coherent extrapolated volition", "unfriendly ai", "foom",
    "intelligence explosion", "recursive self-improvement", "takeoff speed",
    "slow takeoff", "fast takeoff", "hard takeoff", "soft takeoff",
    "evals for ai", "ai evaluations", "dangerous capabilities",
    "capability elicitation", "sandbagging", "scheming", "situational awareness",
    "model organisms",
    # Governance and policy
    "ai governance", "ai policy", "ai regulation", "ai moratorium", "pause ai",
    "frontier ai", "frontier model", "responsible scaling",
    "responsible ai development", "ai safety institute", "compute governance",
    # EA / rationality community
    "effective altruism", "effective altruist", "ea global", "eagx",
    "ea community", "rationalist", "rationality", "lesswrong", "less wrong",
    "overcoming bias", "longtermism", "longtermist", "long-termism",
    "long-termist", "biosecurity", "global priorities", "cause prioritization",
    "earning to give", "marginal impact", "80,000 hours", "80000 hours",
    "giving what we can", "high-impact career",
    # Superintelligence / AGI discourse
    "superintelligence", "superintelligent", "artificial general intelligence",
    "transformative ai", "tai risk", "agi timeline", "technological singularity",
]

# Long or unique organization names. Substring match.
KNOWN_ORGS_SUBSTRING = [
    # Research labs and institutes
    "mats program", "apart research", "redwood research", "anthropic",
    "center for ai safety", "centre for ai safety", "alignment research center",
    "arc evals", "chai berkeley", "center for human-compatible ai",
    "centre for human-compatible ai", "machine intelligence research institute",
    "future of humanity institute", "future of life institute",
    "leverhulme centre", "global catastrophic risk institute",
    "center for security and emerging technology",
    "institute for ai policy and strategy", "centre for the governance of ai",
    "governance of ai", "epoch ai", "ai safety hub", "foresight institute", "cesia",
    # EA orgs
    "open philanthropy", "effective ventures", "centre for effective altruism",
    "center for effective altruism", "giving what we can", "80,000 hours",
    "80000 hours", "ea forum", "rethink priorities",
    # Programs and fellowships
    "bluedot impact", "interact fellowship", "ai safety camp", "alignment jam",
    "non-trivial", "aisafety.com", "aisafety.info",
    # Policy and advocacy
    "pause ai", "ai safety institute", "nist ai",
    # Community hubs
    "lesswrong", "less wrong", "ea london", "ea nyc", "ea bay area",
    "ea oxford", "ea cambridge",
    # Slug variants
    "aisafety", "pauseai", "apartresearch", "alignmentjam",
]

# Short phrases that only count as whole words ("x risk" but not "tax risk")
PHRASES_WORD_BOUNDARY = ["x risk", "x-risk", "stop ai"]

# Short or ambiguous org names ("mats" but not "formats")
KNOWN_ORGS_WORD_BOUNDARY = [
    "mats", "cais", "miri", "fhi", "fli", "gcri", "cset", "govai",
    "conjecture ai", "aisi", "uk aisi", "us aisi", "far ai", "bluedot",
    "pibbss", "saige", "rand ai", "ea sf", "rationalist",
]


def normalize_text(text: Optional[str]) -> str:
    """Lower-case, hyphens/underscores/ampersands to spaces, whitespace collapsed"""
    if not text:
        return ""
    text = text.lower()
    text = re.sub(r"[\n\r\t]+", " ", text)
    text = re.sub(r"[-_]+", " ", text)
    text = text.replace("&", " ")
    return re.sub(r"\s+", " ", text).strip()


def _terms(terms: List[str]) -> List[str]:
    # Terms go through the same normalization as the text so "mesa-optimizer" still matches
    seen = []
    for term in terms:
        normalized = normalize_text(term)
        if normalized and normalized not in seen:
            seen.append(normalized)
    return seen


def _word_patterns(terms: List[str]) -> List[Tuple[str, Pattern]]:
    return [(term, re.compile(rf"\b{re.escape(term)}\b")) for term in _terms(terms)]


class PreFilter:
    """Whitelist gate applied before any LLM cost is spent.

    A record passes iff its title, description or organization carries at least
    one known safety phrase or organization name. The check is deliberately
    generous; the evaluator decides relevance.
    """

    def __init__(self):
        self.safety_phrases = _terms(SAFETY_PHRASES)
        self.org_substrings = _terms(KNOWN_ORGS_SUBSTRING)
        self.phrase_patterns = _word_patterns(PHRASES_WORD_BOUNDARY)
        self.org_patterns = _word_patterns(KNOWN_ORGS_WORD_BOUNDARY)

    def match(self, title: Optional[str], description: Optional[str] = None,
              source_org: Optional[str] = None) -> Optional[str]:
        """Return the first matched signal, or None if there is no positive signal"""
        org = normalize_text(source_org)
        combined = " ".join([normalize_text(title), normalize_text(description), org])

        for term in self.org_substrings:
            if term in org:
                return f"org: {term}"
        for term, pattern in self.org_patterns:
            if pattern.search(org):
                return f"org: {term}"

        for term in self.safety_phrases:
            if term in combined:
                return term
        for term, pattern in self.phrase_patterns:
            if pattern.search(combined):
                return term

        for term in self.org_substrings:
            if term in combined:
                return f"mentions org: {term}"
        for term, pattern in self.org_patterns:
            if pattern.search(combined):
                return f"mentions org: {term}"

        return None

    def check(self, title: Optional[str], description: Optional[str] = None,
              source_org: Optional[str] = None) -> Tuple[bool, str]:
        """(passed, reason). The reason is the matched term or the generic rejection text."""
        matched = self.match(title, description, source_org)
        if matched:
            return True, matched
        return False, NO_SIGNAL_REASON

    def filter(self, events: List[GatheredEvent]) -> PreFilterResult:
        result = PreFilterResult()
        for event in events:
            passed, reason = self.check(event.title, event.description, event.source_org)
            if passed:
                result.kept.append(event)
            else:
                result.rejected.append(RejectedEvent(event=event, reason=reason))
        return result
