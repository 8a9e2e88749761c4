from assetminifier.rules.ruleset import RuleSet, classify_line, parse_rules, load_rules_file
from assetminifier.rules.filters import accept_input_file, is_entry_included
from assetminifier.rules.wildcard import wildcard_match

__all__ = [
    "RuleSet",
    "classify_line",
    "parse_rules",
    "load_rules_file",
    "accept_input_file",
    "is_entry_included",
    "wildcard_match",
]
