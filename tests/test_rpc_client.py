"""
Tests for the ZKsync RPC Client

The requests session is replaced with a mock, so no network access is needed.
"""

import unittest
import sys
import os
from unittest import mock

import requests

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from zeek.api.rpc_client import ZkSyncRPCClient, ZkSyncRPCError
from zeek.gas import build_call_request

RPC_URL = "http://localhost:3050"

PROOF_RESPONSE = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "address": "0x0000000000000000000000000000000000008003",
        "storageProof": [
            {
                "key": "0x8B65C0CF1012EA9F393197EB24619FD814379B298B238285649E14F936A5EB12",
                "proof": ["0x" + "AB" * 32, "0x" + "cd" * 32],
                "value": "0x0000000000000000000000000000000000000000000000000000000000000060",
                "index": 27900957,
            }
        ],
    },
}

BATCH_RESPONSE = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "number": 468355,
        "timestamp": 1711014906,
        "l1TxCount": 3,
        "l2TxCount": 1731,
        "rootHash": "0x" + "EF" * 32,
        "status": "verified",
        "commitTxHash": "0x" + "01" * 32,
        "committedAt": "2024-03-21T10:00:00Z",
        "proveTxHash": None,
        "provenAt": None,
        "executeTxHash": None,
        "executedAt": None,
        "l1GasPrice": 28970000000,
        "l2FairGasPrice": 45250000,
        "baseSystemContractsHashes": {
            "bootloader": "0x" + "02" * 32,
            "default_aa": "0x" + "03" * 32,
        },
    },
}

FEE_PARAMS_RESPONSE = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "V2": {
            "config": {
                "minimal_l2_gas_price": 25000000,
                "compute_overhead_part": 0.0,
                "pubdata_overhead_part": 1.0,
                "batch_overhead_l1_gas": 800000,
                "max_gas_per_batch": 200000000,
                "max_pubdata_per_batch": 240000,
            },
            "l1_gas_price": 20000000000,
            "l1_pubdata_price": 1000000000,
        }
    },
}


def fake_response(payload, status_error=None):
    response = mock.MagicMock()
    response.json.return_value = payload
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


class RPCClientTestCase(unittest.TestCase):

    def setUp(self):
        self.client = ZkSyncRPCClient(rpc_url=RPC_URL, timeout=5)
        self.post = mock.MagicMock()
        self.client.session.post = self.post

    def respond(self, payload):
        self.post.return_value = fake_response(payload)

    def sent_payload(self):
        return self.post.call_args.kwargs["json"]


class TestProofRequests(RPCClientTestCase):

    def test_get_proof(self):
        self.respond(PROOF_RESPONSE)
        keys = ["0x" + "00" * 32]

        result = self.client.get_proof("0x0000000000000000000000000000000000008003", keys, 468355)

        payload = self.sent_payload()
        self.assertEqual(payload["jsonrpc"], "2.0")
        self.assertEqual(payload["method"], "zks_getProof")
        self.assertEqual(
            payload["params"], ["0x0000000000000000000000000000000000008003", keys, 468355]
        )
        self.assertEqual(self.post.call_args.args[0], RPC_URL)
        self.assertEqual(self.post.call_args.kwargs["timeout"], 5)

        self.assertEqual(result.address, "0x0000000000000000000000000000000000008003")
        self.assertEqual(len(result.storage_proof), 1)
        proof = result.storage_proof[0]
        self.assertEqual(proof.index, 27900957)
        self.assertEqual(proof.key, "0x8b65c0cf1012ea9f393197eb24619fd814379b298b238285649e14f936a5eb12")
        self.assertEqual(proof.proof[0], "0x" + "ab" * 32)

    def test_get_l1_batch_details(self):
        self.respond(BATCH_RESPONSE)

        details = self.client.get_l1_batch_details(468355)

        self.assertEqual(self.sent_payload()["method"], "zks_getL1BatchDetails")
        self.assertEqual(self.sent_payload()["params"], [468355])
        self.assertEqual(details.number, 468355)
        self.assertEqual(details.l1_tx_count, 3)
        self.assertEqual(details.root_hash, "0x" + "ef" * 32)
        self.assertIsNone(details.prove_tx_hash)
        self.assertEqual(details.base_system_contracts_hashes.default_aa, "0x" + "03" * 32)

    def test_request_ids_increase(self):
        self.respond(BATCH_RESPONSE)
        self.client.get_l1_batch_details(1)
        first = self.sent_payload()["id"]
        self.client.get_l1_batch_details(2)
        self.assertEqual(self.sent_payload()["id"], first + 1)


class TestErrors(RPCClientTestCase):

    def test_rpc_error_object(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "invalid params"}})
        with self.assertRaises(ZkSyncRPCError) as ctx:
            self.client.get_l1_batch_details(1)
        self.assertEqual(ctx.exception.code, -32602)
        self.assertIn("invalid params", str(ctx.exception))

    def test_missing_result(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": None})
        with self.assertRaises(ZkSyncRPCError):
            self.client.get_l1_batch_details(1)

    def test_connection_error(self):
        self.post.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ZkSyncRPCError) as ctx:
            self.client.get_gas_price()
        self.assertIn(RPC_URL, str(ctx.exception))

    def test_timeout(self):
        self.post.side_effect = requests.Timeout("slow")
        with self.assertRaises(ZkSyncRPCError):
            self.client.get_gas_price()

    def test_http_error(self):
        self.post.return_value = fake_response({}, status_error=requests.HTTPError("503"))
        with self.assertRaises(ZkSyncRPCError):
            self.client.get_gas_price()

    def test_invalid_result_shape(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": {"address": "0x00"}})
        result = self.client.get_proof("0x00", [], 1)
        self.assertEqual(result.storage_proof, [])

        self.respond({"jsonrpc": "2.0", "id": 1, "result": {"number": "not a number"}})
        with self.assertRaises(ZkSyncRPCError):
            self.client.get_l1_batch_details(1)

    def test_invalid_quantity(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": "0xnope"})
        with self.assertRaises(ZkSyncRPCError):
            self.client.get_l1_gas_price()


class TestGasRequests(RPCClientTestCase):

    def test_gas_price(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": "0x2b275d0"})
        self.assertEqual(self.client.get_gas_price(), 0x2b275d0)
        self.assertEqual(self.sent_payload()["method"], "eth_gasPrice")
        self.assertEqual(self.sent_payload()["params"], [])

    def test_l1_gas_price(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": "0x3b9aca00"})
        self.assertEqual(self.client.get_l1_gas_price(), 10**9)
        self.assertEqual(self.sent_payload()["method"], "zks_getL1GasPrice")

    def test_estimate_fee(self):
        self.respond({
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "gas_limit": "0x156c00",
                "max_fee_per_gas": "0x2b275d0",
                "max_priority_fee_per_gas": "0x0",
                "gas_per_pubdata_limit": "0xc350",
            },
        })
        call = build_call_request(to="0x" + "11" * 20, value_eth=1.0)

        estimate = self.client.estimate_fee(call)

        payload = self.sent_payload()
        self.assertEqual(payload["method"], "zks_estimateFee")
        self.assertEqual(payload["params"], [{"to": "0x" + "11" * 20, "value": hex(10**18), "data": "0x"}])
        self.assertEqual(estimate.gas_per_pubdata_limit, "0xc350")

    def test_estimate_gas_l1_to_l2(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": "0x7a120"})
        call = build_call_request(to="0x" + "11" * 20, from_address="0x" + "22" * 20)

        self.assertEqual(self.client.estimate_gas_l1_to_l2(call), 500000)
        self.assertEqual(
            self.sent_payload()["params"],
            [{"from": "0x" + "22" * 20, "to": "0x" + "11" * 20, "data": "0x"}],
        )

    def test_fee_params(self):
        self.respond(FEE_PARAMS_RESPONSE)
        params = self.client.get_fee_params()
        self.assertEqual(params.l1_pubdata_price, 1000000000)
        self.assertEqual(params.config.max_pubdata_per_batch, 240000)

    def test_fee_params_without_v2(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": {"V1": {}}})
        with self.assertRaises(ZkSyncRPCError):
            self.client.get_fee_params()


class TestHealthAndSanitizing(RPCClientTestCase):

    def test_health_check(self):
        self.respond({"jsonrpc": "2.0", "id": 1, "result": "0x144"})
        self.assertTrue(self.client.health_check())
        self.assertEqual(self.sent_payload()["method"], "eth_chainId")

        self.post.side_effect = requests.ConnectionError("down")
        self.assertFalse(self.client.health_check())

    def test_camel_to_snake(self):
        self.assertEqual(self.client._camel_to_snake("storageProof"), "storage_proof")
        self.assertEqual(self.client._camel_to_snake("l1TxCount"), "l1_tx_count")
        self.assertEqual(self.client._camel_to_snake("default_aa"), "default_aa")
        self.assertEqual(self.client._camel_to_snake("V2"), "v2")

    def test_sanitize_nested(self):
        data = {"outerKey": [{"innerKey": "0xABC"}, "0xDEF", 5]}
        self.assertEqual(
            self.client.sanitize_rpc_data(data),
            {"outer_key": [{"inner_key": "0xabc"}, "0xdef", 5]},
        )

    def test_sanitize_without_a_client(self):
        data = {"storageProof": [{"key": "0xAB"}]}
        self.assertEqual(
            ZkSyncRPCClient.sanitize_rpc_data(data),
            {"storage_proof": [{"key": "0xab"}]},
        )


class TestConfiguration(unittest.TestCase):

    def test_environment_defaults(self):
        with mock.patch.dict(os.environ, {"ZKSYNC_RPC_URL": "http://node:3050", "ZKSYNC_RPC_TIMEOUT": "7"}):
            client = ZkSyncRPCClient()
        self.assertEqual(client.rpc_url, "http://node:3050")
        self.assertEqual(client.timeout, 7.0)

    def test_public_endpoint_fallback(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            client = ZkSyncRPCClient()
        self.assertEqual(client.rpc_url, "https://mainnet.era.zksync.io")
        self.assertEqual(client.timeout, 30)

    def test_explicit_arguments_win(self):
        with mock.patch.dict(os.environ, {"ZKSYNC_RPC_URL": "http://node:3050"}):
            client = ZkSyncRPCClient(rpc_url=RPC_URL, timeout=2)
        self.assertEqual(client.rpc_url, RPC_URL)
        self.assertEqual(client.timeout, 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
