"""
Rule loader - parses the YAML rule catalog into RuleMetadata objects
"""

import yaml
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import List, Dict, Any, Mapping, Optional
import logging

from .models import RuleMetadata, RuleCategory, Severity, Confidence

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_DIR = Path(__file__).parent / "catalog"


class RuleLoader:
    """Loads rule metadata from YAML catalog files"""

    def __init__(self, catalog_dir: Optional[Path] = None):
        self.catalog_dir = Path(catalog_dir) if catalog_dir else DEFAULT_CATALOG_DIR
        self.rules: Dict[str, RuleMetadata] = {}
        self._loaded_files: List[str] = []

    def load_all(self) -> Dict[str, RuleMetadata]:
        """Load every catalog file, keyed by rule ID"""
        self.rules = {}
        self._loaded_files = []

        if not self.catalog_dir.exists():
            logger.warning(f"Catalog directory not found: {self.catalog_dir}")
            return self.rules

        yaml_files = sorted(self.catalog_dir.rglob("*.yaml")) + sorted(self.catalog_dir.rglob("*.yml"))

        for yaml_file in yaml_files:
            try:
                entries = self.load_file(yaml_file)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load catalog {yaml_file}: {e}")
                continue
            for entry in entries:
                if entry.id in self.rules:
                    logger.error(f"Duplicate catalog entry {entry.id} in {yaml_file.name}")
                    continue
                self.rules[entry.id] = entry
            self._loaded_files.append(str(yaml_file))
            logger.debug(f"Loaded {len(entries)} catalog entries from {yaml_file.name}")

        logger.info(f"Total catalog entries loaded: {len(self.rules)}")
        return self.rules

    def load_file(self, filepath: Path) -> List[RuleMetadata]:
        """Load catalog entries from a single YAML file"""
        entries: List[RuleMetadata] = []

        with open(filepath, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if not data:
            return entries

        metadata = data.get('metadata', {}) or {}

        for raw in data.get('rules', []) or []:
            try:
                entry = self._parse_entry(raw, metadata)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                rule_id = raw.get('id', 'unknown') if isinstance(raw, dict) else 'unknown'
                logger.error(f"Failed to parse catalog entry {rule_id}: {e}")
                continue
            if entry:
                entries.append(entry)

        return entries

    def _parse_entry(self, raw: Dict[str, Any], metadata: Dict[str, Any]) -> Optional[RuleMetadata]:
        """Parse a single catalog entry from raw YAML data"""
        if not raw.get('id') or not raw.get('name'):
            return None

        category = RuleCategory(str(raw.get('category') or metadata['category']).lower())

        severity_str = str(raw.get('severity', 'medium')).lower()
        try:
            severity = Severity(severity_str)
        except ValueError:
            logger.warning(f"Unknown severity '{severity_str}' for {raw['id']}, using medium")
            severity = Severity.MEDIUM

        confidence_str = str(raw.get('confidence', 'medium')).lower()
        try:
            confidence = Confidence(confidence_str)
        except ValueError:
            logger.warning(f"Unknown confidence '{confidence_str}' for {raw['id']}, using medium")
            confidence = Confidence.MEDIUM

        return RuleMetadata(
            id=raw['id'],
            name=raw['name'],
            description=(raw.get('description') or '').strip(),
            category=category,
            severity=severity,
            confidence=confidence,
            guideline=str(raw.get('guideline') or category.guideline_section),
            documentation_url=raw.get('documentation_url'),
            tags=list(raw.get('tags', []) or []),
        )

    def get(self, rule_id: str) -> Optional[RuleMetadata]:
        return self.rules.get(rule_id)

    def get_by_category(self, category: RuleCategory) -> List[RuleMetadata]:
        return [entry for entry in self.rules.values() if entry.category == category]

    @property
    def stats(self) -> Dict[str, Any]:
        """Get statistics about loaded catalog entries"""
        severity_counts = {}
        for severity in Severity:
            severity_counts[severity.value] = len([r for r in self.rules.values() if r.severity == severity])

        return {
            'total_rules': len(self.rules),
            'files_loaded': len(self._loaded_files),
            'by_severity': severity_counts,
        }


@lru_cache(maxsize=None)
def default_catalog() -> Mapping[str, RuleMetadata]:
    """Metadata shipped with the package, read once per process.

    The mapping is read-only; copy it with ``dict()`` to customize.
    """
    return MappingProxyType(dict(RuleLoader().load_all()))
