# mock_data.py - static Azure Policy compliance data standing in for a real backend
import random
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol

STATUSES = ("Compliant", "NonCompliant", "NotStarted", "Pending", "Exempt")

SUBSCRIPTIONS = [
    {"id": "sub-001", "displayName": "Production Subscription A"},
    {"id": "sub-002", "displayName": "Development Subscription B"},
    {"id": "sub-003", "displayName": "Staging Subscription C"},
]

POLICY_INITIATIVES = [
    {"id": "init-001", "displayName": "Azure Security Benchmark v3"},
    {"id": "init-002", "displayName": "HIPAA HITRUST Blueprint"},
    {"id": "init-003", "displayName": "NIST SP 800-53 Rev. 5"},
]

POLICY_DEFINITIONS = [
    {"id": "policy-001", "displayName": "Allowed locations", "category": "General"},
    {"id": "policy-002", "displayName": "Audit VMs that do not use managed disks", "category": "Compute"},
    {"id": "policy-003", "displayName": "Enforce HTTPS only for App Service", "category": "App Service"},
    {"id": "policy-004", "displayName": "Require MFA for all admin accounts", "category": "Identity"},
    {"id": "policy-005", "displayName": "Storage accounts should restrict network access", "category": "Storage"},
]

TREND_DATA = [
    {"date": "Jan", "compliant": 70, "nonCompliant": 30, "total": 100},
    {"date": "Feb", "compliant": 75, "nonCompliant": 25, "total": 100},
    {"date": "Mar", "compliant": 80, "nonCompliant": 20, "total": 100},
    {"date": "Apr", "compliant": 78, "nonCompliant": 22, "total": 100},
    {"date": "May", "compliant": 82, "nonCompliant": 18, "total": 100},
    {"date": "Jun", "compliant": 85, "nonCompliant": 15, "total": 100},
]

# (item fields, age in days)
_ITEM_TEMPLATES = [
    ({
        "id": "item-001",
        "policyName": "Allowed locations",
        "policySetDefinitionName": "Azure Security Benchmark v3",
        "subscriptionId": "sub-001",
        "resourceId": "/subscriptions/sub-001/resourceGroups/rg-prod/providers/Microsoft.Compute/virtualMachines/vm-prod-01",
        "status": "Compliant",
        "tags": {"environment": "production", "app": "billing"},
        "complianceState": "Compliant",
        "policyDefinitionId": "policy-001",
        "policyAssignmentId": "assign-001",
        "resourceType": "Microsoft.Compute/virtualMachines",
        "resourceLocation": "eastus",
    }, 0),
    ({
        "id": "item-002",
        "policyName": "Audit VMs that do not use managed disks",
        "policySetDefinitionName": "Azure Security Benchmark v3",
        "subscriptionId": "sub-001",
        "resourceId": "/subscriptions/sub-001/resourceGroups/rg-prod/providers/Microsoft.Compute/virtualMachines/vm-prod-02",
        "status": "NonCompliant",
        "tags": {"environment": "production", "app": "inventory"},
        "complianceState": "NonCompliant",
        "policyDefinitionId": "policy-002",
        "policyAssignmentId": "assign-002",
        "resourceType": "Microsoft.Compute/virtualMachines",
        "resourceLocation": "westus",
        "nonComplianceDetails": "Virtual machine is using unmanaged disks.",
    }, 1),
    ({
        "id": "item-003",
        "policyName": "Enforce HTTPS only for App Service",
        "policySetDefinitionName": "HIPAA HITRUST Blueprint",
        "subscriptionId": "sub-002",
        "resourceId": "/subscriptions/sub-002/resourceGroups/rg-dev/providers/Microsoft.Web/sites/webapp-dev-01",
        "status": "Compliant",
        "tags": {"environment": "development", "app": "portal"},
        "complianceState": "Compliant",
        "policyDefinitionId": "policy-003",
        "policyAssignmentId": "assign-003",
        "resourceType": "Microsoft.Web/sites",
        "resourceLocation": "centralus",
    }, 2),
    ({
        "id": "item-004",
        "policyName": "Require MFA for all admin accounts",
        "subscriptionId": "sub-001",
        "resourceId": "/subscriptions/sub-001/providers/Microsoft.Authorization/policyAssignments/mfa-assignment",
        "status": "Pending",
        "complianceState": "Pending",
        "policyDefinitionId": "policy-004",
        "policyAssignmentId": "assign-004",
        "resourceType": "Microsoft.Authorization/policyAssignments",
        "resourceLocation": "global",
    }, 0),
    ({
        "id": "item-005",
        "policyName": "Storage accounts should restrict network access",
        "policySetDefinitionName": "NIST SP 800-53 Rev. 5",
        "subscriptionId": "sub-003",
        "resourceId": "/subscriptions/sub-003/resourceGroups/rg-staging/providers/Microsoft.Storage/storageAccounts/stagestorage001",
        "status": "NonCompliant",
        "tags": {"environment": "staging", "app": "analytics"},
        "complianceState": "NonCompliant",
        "policyDefinitionId": "policy-005",
        "policyAssignmentId": "assign-005",
        "resourceType": "Microsoft.Storage/storageAccounts",
        "resourceLocation": "eastus2",
        "nonComplianceDetails": "Storage account allows public network access.",
    }, 3),
]


class ComplianceDataProvider(Protocol):
    """Read-only source of compliance data for the dashboard views."""

    def items(self) -> List[Dict[str, Any]]: ...
    def subscriptions(self) -> List[Dict[str, Any]]: ...
    def initiatives(self) -> List[Dict[str, Any]]: ...
    def definitions(self) -> List[Dict[str, Any]]: ...
    def trend(self) -> List[Dict[str, Any]]: ...


def _iso(ts: datetime) -> str:
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MockDataProvider:
    """Serves the static collections; item timestamps are relative to ``now``."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime.now(timezone.utc)
        self._items = []
        for fields, age_days in _ITEM_TEMPLATES:
            item = dict(fields)
            item["timestamp"] = _iso(self.now - timedelta(days=age_days))
            self._items.append(item)

    def items(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self._items]

    def subscriptions(self) -> List[Dict[str, Any]]:
        return list(SUBSCRIPTIONS)

    def initiatives(self) -> List[Dict[str, Any]]:
        return list(POLICY_INITIATIVES)

    def definitions(self) -> List[Dict[str, Any]]:
        return list(POLICY_DEFINITIONS)

    def trend(self) -> List[Dict[str, Any]]:
        return list(TREND_DATA)


# ============================================================
# Random items (load testing the views with larger collections)
# ============================================================
def _token(rng: random.Random, length: int = 6) -> str:
    return "".join(rng.choice(string.ascii_lowercase + string.digits) for _ in range(length))


def random_compliance_item(rng: Optional[random.Random] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    status = rng.choice(["Compliant", "NonCompliant", "Pending"])
    item = {
        "id": f"item-{_token(rng)}",
        "policyName": rng.choice(POLICY_DEFINITIONS)["displayName"],
        "policySetDefinitionName": rng.choice(POLICY_INITIATIVES)["displayName"],
        "subscriptionId": rng.choice(SUBSCRIPTIONS)["id"],
        "resourceId": f"/subscriptions/sub-mock/resourceGroups/rg-mock/providers/Microsoft.Mock/resources/mock-resource-{_token(rng)}",
        "status": status,
        "timestamp": _iso(now - timedelta(days=rng.random() * 10)),
        "tags": {"environment": rng.choice(["production", "development", "staging"])},
        "complianceState": status,
        "policyDefinitionId": f"policy-def-{_token(rng)}",
        "policyAssignmentId": f"policy-assign-{_token(rng)}",
        "resourceType": "Microsoft.Mock/resources",
        "resourceLocation": rng.choice(["eastus", "westus", "centralus"]),
    }
    if rng.random() > 0.7:
        item["nonComplianceDetails"] = "Mock non-compliance details."
    return item


def many_compliance_items(count: int, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    rng = rng or random.Random()
    return [random_compliance_item(rng) for _ in range(count)]
