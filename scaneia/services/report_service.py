from datetime import datetime
from ..models.scan_model import SEVERITIES

UNKNOWN_SITE = "Site Desconhecido"
TOP_TYPES = 5
RECENT_SCANS = 5


def _sort_key(timestamp):
    # Scans without a timestamp sink to the bottom
    return (timestamp is not None, timestamp or datetime.min)


def compute_statistics(sites, scans):
    site_urls = {site.id: site.url for site in sites}
    by_severity = {severity: 0 for severity in SEVERITIES}
    by_type = {}
    total_vulnerabilities = 0
    rows = []

    for scan in scans:
        vulnerabilities = scan.vulnerabilities or []
        total_vulnerabilities += len(vulnerabilities)
        for vuln in vulnerabilities:
            severity = vuln.get("severity")
            if severity in by_severity:
                by_severity[severity] += 1
            vuln_type = vuln.get("type")
            if vuln_type:
                by_type[vuln_type] = by_type.get(vuln_type, 0) + 1

        rows.append({
            "id": scan.id,
            "timestamp": scan.timestamp,
            "vulnerabilitiesCount": len(vulnerabilities),
            "siteUrl": site_urls.get(scan.site_id, UNKNOWN_SITE),
        })

    rows.sort(key=lambda row: _sort_key(row["timestamp"]), reverse=True)

    return {
        "totalSites": len(sites),
        "totalScans": len(rows),
        "totalVulnerabilities": total_vulnerabilities,
        "vulnerabilitiesBySeverity": by_severity,
        "vulnerabilitiesByType": by_type,
        "recentScans": rows[:RECENT_SCANS],
    }


def types_ranked(by_type, limit=TOP_TYPES):
    ranked = sorted(by_type.items(), key=lambda item: item[1], reverse=True)
    return ranked if limit is None else ranked[:limit]


def severity_share(count, total):
    return int(count * 100 / total) if total else 0


def scan_rows(sites, scans):
    """Scans annotated with their site URL, newest first."""
    site_urls = {site.id: site.url for site in sites}
    rows = [
        {"scan": scan, "siteUrl": site_urls.get(scan.site_id, UNKNOWN_SITE)}
        for scan in scans
    ]
    rows.sort(key=lambda row: _sort_key(row["scan"].timestamp), reverse=True)
    return rows
