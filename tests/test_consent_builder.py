"""
Test Consent Policy Builder

Verifies the consent-platform data is turned into a policy graph that
grants the expected permissions.
"""

import pytest
from pydantic import ValidationError

from ngac_policy.builders.consent import (
    AGREEMENTS_ATTRIBUTE,
    AccessGrant,
    ConsentAgreement,
    ConsentPolicyBuilder,
    ConsentPolicyDefinition,
    DataAsset,
    DataHandler,
    HandlerRole,
    PlatformUser,
    sample_definition,
)
from ngac_policy.core.nodes import NodeType, READ, WRITE


class TestSampleConsentPolicy:
    """Test suite for the sample consent policy"""

    def setup_method(self):
        self.policy = ConsentPolicyBuilder().build(sample_definition())

    def test_admin_reads_and_writes_controller_asset(self):
        assert self.policy.permissions("John Doe", "asset-1") == {READ, WRITE}

    def test_admin_reads_and_writes_processor_assets(self):
        assert self.policy.permissions("John Doe", "asset-2") == {READ, WRITE}
        assert self.policy.permissions("John Doe", "asset-3") == {READ, WRITE}

    def test_assets_with_same_name_are_distinct(self):
        graph = self.policy.graph
        assert self.policy.assets["asset-2"] != self.policy.assets["asset-3"]
        assert len(graph.search(name="DataAsset2", node_type=NodeType.O)) == 2

    def test_graph_shape(self):
        graph = self.policy.graph
        pc = self.policy.policy_class
        asset3 = self.policy.assets["asset-3"]

        assert graph.get_node(pc).node_type == NodeType.PC
        assert graph.parents(asset3) == {
            self.policy.handlers["DataProcessor"],
            self.policy.agreements["agreementAnalytics"],
        }
        top_level = {graph.get_node(n).name for n in graph.children(pc)}
        assert top_level == {"DataSubjects", AGREEMENTS_ATTRIBUTE}
        assert graph.find_unanchored() == []

    def test_handler_and_agreement_properties(self):
        graph = self.policy.graph
        processor = graph.get_node(self.policy.handlers["DataProcessor"])
        marketing = graph.get_node(self.policy.agreements["agreementMarketing"])

        assert processor.properties["role"] == "processor"
        assert marketing.properties["purpose"] == "marketing"

    def test_unknown_lookups(self):
        with pytest.raises(KeyError):
            self.policy.permissions("Jane Doe", "asset-1")
        with pytest.raises(KeyError):
            self.policy.permissions("John Doe", "asset-9")


class TestConsentPolicyDefinition:
    """Test suite for consent data validation and grant scoping"""

    def _definition(self, **overrides):
        data = dict(
            users=[
                PlatformUser(name="alice", attributes=["Analysts"]),
                PlatformUser(name="bob", attributes=["Auditors"]),
            ],
            assets=[DataAsset(key="a1", name="Orders"), DataAsset(key="a2", name="Invoices")],
            handlers=[
                DataHandler(name="Shop", role=HandlerRole.CONTROLLER, assets=["a1"]),
                DataHandler(name="Billing", role="processor", assets=["a2"]),
            ],
            agreements=[ConsentAgreement(name="terms", assets=["a1", "a2"])],
            grants=[AccessGrant(user_attribute="Analysts", handler="Shop", operations=[READ])],
        )
        data.update(overrides)
        return ConsentPolicyDefinition(**data)

    def test_grants_scoped_to_handler(self):
        policy = ConsentPolicyBuilder().build(self._definition())

        assert policy.permissions("alice", "a1") == {READ}
        assert policy.permissions("alice", "a2") == set()
        assert policy.permissions("bob", "a1") == set()

    def test_unknown_asset_rejected(self):
        with pytest.raises(ValidationError):
            self._definition(agreements=[ConsentAgreement(name="terms", assets=["a9"])])

    def test_unknown_handler_rejected(self):
        with pytest.raises(ValidationError):
            self._definition(
                grants=[AccessGrant(user_attribute="Analysts", handler="Nobody", operations=[READ])]
            )

    def test_unknown_user_attribute_rejected(self):
        with pytest.raises(ValidationError):
            self._definition(
                grants=[AccessGrant(user_attribute="Ghosts", handler="Shop", operations=[READ])]
            )

    def test_empty_operations_rejected(self):
        with pytest.raises(ValidationError):
            AccessGrant(user_attribute="Analysts", handler="Shop", operations=[])

    def test_duplicate_asset_keys_rejected(self):
        with pytest.raises(ValidationError):
            self._definition(assets=[DataAsset(key="a1", name="x"), DataAsset(key="a1", name="y")])
