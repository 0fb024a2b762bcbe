"""Obligation suggesters: external sources of candidate obligations.

The engine never infers obligations itself. A suggester supplies candidates
and variable consideration for a contract, whether typed in by a person,
fixed in code or read from a rules file.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from ..data.normalizer import CandidateNormalizer
from ..errors import MalformedInputError
from ..models.contract import Contract, ObligationCandidate, VariableConsiderationElement

logger = structlog.get_logger(__name__)


@dataclass
class Suggestion:
    """Candidates and variable consideration proposed for a contract."""
    candidates: list[ObligationCandidate] = field(default_factory=list)
    variable_consideration: list[VariableConsiderationElement] = field(default_factory=list)
    source: Optional[str] = None


class ObligationSuggester(ABC):
    """Base class for obligation suggestion sources."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logger.bind(suggester=name)

    @abstractmethod
    def suggest(self, contract: Contract) -> Suggestion:
        """
        Propose obligations for a contract.

        Args:
            contract: Contract to suggest obligations for

        Returns:
            Suggestion; empty candidates mean the whole contract is one obligation
        """
        pass


class StaticObligationSuggester(ObligationSuggester):
    """Suggestions entered up front, keyed by contract id."""

    def __init__(
        self,
        candidates: Optional[dict[str, list[ObligationCandidate]]] = None,
        variable_consideration: Optional[dict[str, list[VariableConsiderationElement]]] = None
    ):
        super().__init__("static")
        self.candidates = candidates or {}
        self.variable_consideration = variable_consideration or {}

    def set_candidates(self, contract_id: str, candidates: list[ObligationCandidate]) -> None:
        self.candidates[contract_id] = list(candidates)

    def suggest(self, contract: Contract) -> Suggestion:
        suggestion = Suggestion(
            candidates=list(self.candidates.get(contract.id, [])),
            variable_consideration=list(self.variable_consideration.get(contract.id, [])),
            source=self.name
        )
        self.logger.debug(
            "Suggested obligations",
            contract_id=contract.id,
            candidate_count=len(suggestion.candidates)
        )
        return suggestion


class YamlObligationSuggester(ObligationSuggester):
    """
    Suggestions read from a YAML rules file.

    Expected layout::

        contracts:
          CONTRACT-ID:
            obligations:
              - description: Software license
                standalone_selling_price: "6000.00"
                satisfaction_method: point_in_time
            variable_consideration:
              - type: bonus
                amount: "2000.00"
                constraint_factor: "0.5"
    """

    def __init__(self, rules_path: Path, normalizer: Optional[CandidateNormalizer] = None):
        super().__init__("yaml")
        self.rules_path = Path(rules_path)
        self.normalizer = normalizer or CandidateNormalizer()

    def _load_rules(self) -> dict[str, Any]:
        if not self.rules_path.exists():
            return {}

        with open(self.rules_path) as f:
            rules = yaml.safe_load(f) or {}

        return rules.get("contracts") or {}  # type: ignore[no-any-return]

    def suggest(self, contract: Contract) -> Suggestion:
        """
        Raises:
            MalformedInputError: a rule for this contract cannot be normalized
        """
        rule = self._load_rules().get(contract.id) or {}

        candidates, errors = self.normalizer.normalize_candidates(rule.get("obligations") or [])

        elements = []
        for index, raw in enumerate(rule.get("variable_consideration") or []):
            result = self.normalizer.normalize_adjustment(raw)
            if result.success:
                elements.append(result.value)
            else:
                errors.append(f"variable_consideration[{index}] {result.error_msg}")

        if errors:
            raise MalformedInputError(
                f"Invalid obligation rules for contract {contract.id}: {'; '.join(errors)}",
                raw_data=str(self.rules_path),
                expected_format="obligation rules YAML",
                context={"contract_id": contract.id, "errors": errors}
            )

        self.logger.debug(
            "Suggested obligations from rules file",
            contract_id=contract.id,
            rules_path=str(self.rules_path),
            candidate_count=len(candidates),
            variable_elements=len(elements)
        )
        return Suggestion(candidates=candidates, variable_consideration=elements, source=self.name)
