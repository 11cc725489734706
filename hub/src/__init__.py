"""
Aggregation hub package for multi-provider solar telemetry.

Fetches station, device, energy and alarm data from every configured
provider (HopeCloud, SolisCloud, FSolar) in parallel, reduces it into a
cross-provider summary, and reconciles irregular KPI snapshots into one
canonical record per day, month or year.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""
