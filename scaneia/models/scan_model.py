from ..extensions import db
from . import generate_id, utcnow


# Highest first; reports and detail pages render buckets in this order
SEVERITIES = ("Crítica", "Alta", "Média", "Baixa")


class Scan(db.Model):
    __tablename__ = "scans"

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    # Plain reference, not a foreign key: scans outlive a deleted site
    site_id = db.Column(db.String(32), nullable=False, index=True)
    timestamp = db.Column(db.DateTime, default=utcnow, index=True)
    # List of {"type", "severity", "description"} dicts
    vulnerabilities = db.Column(db.JSON, nullable=False, default=list)
    report = db.Column(db.Text, nullable=False, default="")

    def severity_counts(self):
        counts = {severity: 0 for severity in SEVERITIES}
        for vuln in self.vulnerabilities or []:
            if vuln.get("severity") in counts:
                counts[vuln["severity"]] += 1
        return counts
