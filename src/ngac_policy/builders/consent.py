"""
Consent Policy Builder

Assembles an NGAC policy graph from consent-platform data:
- Platform users and the user attributes (roles) they hold
- Data assets owned by a data subject
- Data controllers / processors handling those assets
- Consent agreements covering those assets
- Grants of operations from user attributes to handlers

The builder only talks to the engine through PolicyGraph's mutation API
and Decider's query API; no consent vocabulary leaks into the core.

Graph shape:

    <policy class>
      ├── <data subject>            (OA)
      │     ├── <handler> ...       (OA)  <- assets
      └── ConsentAgreements         (OA)
            ├── <agreement> ...     (OA)  <- assets
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field, model_validator

from ..config.schema import EngineConfig
from ..core.decider import Decider
from ..core.graph import PolicyGraph
from ..core.nodes import NodeId, NodeType, READ, WRITE

logger = logging.getLogger(__name__)

AGREEMENTS_ATTRIBUTE = "ConsentAgreements"


class HandlerRole(str, Enum):
    """Role of a party processing a data subject's assets"""
    CONTROLLER = "controller"
    PROCESSOR = "processor"


class PlatformUser(BaseModel):
    """A platform user and the user attributes they are assigned to"""
    name: str
    attributes: List[str] = Field(min_length=1)


class DataAsset(BaseModel):
    """
    A data asset of the data subject.

    Names are display labels and may repeat; assets are referenced by key.
    """
    key: str
    name: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class DataHandler(BaseModel):
    """A data controller or processor and the assets it handles"""
    name: str
    role: HandlerRole
    assets: List[str] = Field(default_factory=list)


class ConsentAgreement(BaseModel):
    """A signed consent agreement covering a set of assets"""
    name: str
    purpose: Optional[str] = None
    agreement_hash: Optional[str] = None  # Hash of the signed agreement on the platform
    assets: List[str] = Field(default_factory=list)


class AccessGrant(BaseModel):
    """Operations granted to a user attribute on everything a handler holds"""
    user_attribute: str
    handler: str
    operations: List[str] = Field(min_length=1)


class ConsentPolicyDefinition(BaseModel):
    """Complete consent-platform input for one policy class"""
    policy_class: str = "DataAsset Access Policy"
    data_subject: str = "DataSubjects"
    users: List[PlatformUser] = Field(default_factory=list)
    assets: List[DataAsset] = Field(default_factory=list)
    handlers: List[DataHandler] = Field(default_factory=list)
    agreements: List[ConsentAgreement] = Field(default_factory=list)
    grants: List[AccessGrant] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_references(self) -> "ConsentPolicyDefinition":
        asset_keys = [a.key for a in self.assets]
        if len(asset_keys) != len(set(asset_keys)):
            raise ValueError("Asset keys must be unique")

        handler_names = [h.name for h in self.handlers]
        if len(handler_names) != len(set(handler_names)):
            raise ValueError("Handler names must be unique")

        known_assets = set(asset_keys)
        for owner in [*self.handlers, *self.agreements]:
            unknown = [key for key in owner.assets if key not in known_assets]
            if unknown:
                raise ValueError(f"'{owner.name}' references unknown assets: {unknown}")

        user_attributes = {attr for user in self.users for attr in user.attributes}
        for grant in self.grants:
            if grant.handler not in handler_names:
                raise ValueError(f"Grant references unknown handler: {grant.handler}")
            if grant.user_attribute not in user_attributes:
                raise ValueError(f"Grant references unknown user attribute: {grant.user_attribute}")
        return self


@dataclass
class ConsentPolicy:
    """A built consent policy: the graph plus name -> node id lookups"""
    graph: PolicyGraph
    decider: Decider
    policy_class: NodeId
    users: Dict[str, NodeId] = field(default_factory=dict)
    user_attributes: Dict[str, NodeId] = field(default_factory=dict)
    assets: Dict[str, NodeId] = field(default_factory=dict)
    handlers: Dict[str, NodeId] = field(default_factory=dict)
    agreements: Dict[str, NodeId] = field(default_factory=dict)

    def permissions(self, user: str, asset_key: str) -> Set[str]:
        """Operations the named user may perform on the asset"""
        if user not in self.users:
            raise KeyError(f"Unknown user: {user}")
        if asset_key not in self.assets:
            raise KeyError(f"Unknown asset: {asset_key}")
        return self.decider.list_permissions(self.users[user], self.assets[asset_key])


class ConsentPolicyBuilder:
    """Builds a ConsentPolicy from a ConsentPolicyDefinition"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def build(self, definition: ConsentPolicyDefinition) -> ConsentPolicy:
        graph = PolicyGraph(self.config)

        pc = graph.create_node(definition.policy_class, NodeType.PC)
        policy = ConsentPolicy(graph=graph, decider=Decider(graph), policy_class=pc)

        # Users and their attributes
        for user in definition.users:
            user_id = graph.create_node(user.name, NodeType.U)
            policy.users[user.name] = user_id
            for attr in user.attributes:
                if attr not in policy.user_attributes:
                    policy.user_attributes[attr] = graph.create_node(attr, NodeType.UA)
                graph.assign(user_id, policy.user_attributes[attr])

        for asset in definition.assets:
            policy.assets[asset.key] = graph.create_node(
                asset.name, NodeType.O, {"key": asset.key, **asset.properties}
            )

        # Data subject with its controllers and processors
        subject = graph.create_node(definition.data_subject, NodeType.OA)
        for handler in definition.handlers:
            handler_id = graph.create_node(handler.name, NodeType.OA, {"role": handler.role.value})
            policy.handlers[handler.name] = handler_id
            graph.assign(handler_id, subject)
            for key in handler.assets:
                graph.assign(policy.assets[key], handler_id)

        # Consent agreements
        agreements = graph.create_node(AGREEMENTS_ATTRIBUTE, NodeType.OA)
        for agreement in definition.agreements:
            agreement_id = graph.create_node(
                agreement.name,
                NodeType.OA,
                {"purpose": agreement.purpose, "agreement_hash": agreement.agreement_hash},
            )
            policy.agreements[agreement.name] = agreement_id
            graph.assign(agreement_id, agreements)
            for key in agreement.assets:
                graph.assign(policy.assets[key], agreement_id)

        graph.assign(subject, pc)
        graph.assign(agreements, pc)

        for grant in definition.grants:
            graph.associate(
                policy.user_attributes[grant.user_attribute],
                policy.handlers[grant.handler],
                grant.operations,
            )

        graph.validate()
        logger.info(
            f"Built consent policy '{definition.policy_class}': "
            f"{len(policy.users)} users, {len(policy.assets)} assets, "
            f"{len(policy.handlers)} handlers, {len(policy.agreements)} agreements"
        )
        return policy


def sample_definition() -> ConsentPolicyDefinition:
    """
    Sample consent policy: one user administered through "OConsent Admin",
    three assets (two sharing a display name) split between a controller
    and a processor, and marketing/analytics agreements.
    """
    return ConsentPolicyDefinition(
        policy_class="DataAsset Access OConsentPolicy",
        data_subject="DataSubjects",
        users=[PlatformUser(name="John Doe", attributes=["OConsent Admin"])],
        assets=[
            DataAsset(key="asset-1", name="DataAsset1"),
            DataAsset(key="asset-2", name="DataAsset2"),
            DataAsset(key="asset-3", name="DataAsset2"),
        ],
        handlers=[
            DataHandler(name="DataController", role=HandlerRole.CONTROLLER, assets=["asset-1"]),
            DataHandler(name="DataProcessor", role=HandlerRole.PROCESSOR, assets=["asset-2", "asset-3"]),
        ],
        agreements=[
            ConsentAgreement(name="agreementMarketing", purpose="marketing", assets=["asset-1", "asset-2"]),
            ConsentAgreement(name="agreementAnalytics", purpose="analytics", assets=["asset-3"]),
        ],
        grants=[
            AccessGrant(user_attribute="OConsent Admin", handler="DataController", operations=[READ, WRITE]),
            AccessGrant(user_attribute="OConsent Admin", handler="DataProcessor", operations=[READ, WRITE]),
        ],
    )
