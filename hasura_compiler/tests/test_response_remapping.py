# Copyright 2019-present Kensho Technologies, LLC.
import unittest

from ..compiler.response_remapping import (
    FlatPathMapping,
    assign_path,
    flatten_single_result,
    parse_dotted_path,
    remap_response,
    resolve_path,
)
from ..exceptions import MalformedResponseError


class ResponseRemappingTests(unittest.TestCase):
    def test_remap_insert(self) -> None:
        flat_paths = [FlatPathMapping.from_dotted_paths("user.insert", "insert_user.returning")]
        response = {"insert_user": {"returning": [{"id": 1}]}}

        self.assertEqual({"user": {"insert": [{"id": 1}]}}, remap_response(flat_paths, response))

    def test_remap_several_actions(self) -> None:
        flat_paths = [
            FlatPathMapping.from_dotted_paths("user.update", "update_user.returning"),
            FlatPathMapping.from_dotted_paths("post.insert", "insert_post.returning"),
            FlatPathMapping.from_dotted_paths("user.delete", "delete_user.returning"),
        ]
        response = {
            "update_user": {"returning": [{"id": 1, "name": "Bob"}]},
            "insert_post": {"returning": [{"id": "p1"}, {"id": "p2"}]},
            "delete_user": {"returning": []},
        }

        expected_result = {
            "user": {"update": [{"id": 1, "name": "Bob"}], "delete": []},
            "post": {"insert": [{"id": "p1"}, {"id": "p2"}]},
        }
        self.assertEqual(expected_result, remap_response(flat_paths, response))

    def test_remap_does_not_modify_response(self) -> None:
        flat_paths = [FlatPathMapping.from_dotted_paths("user.insert", "insert_user.returning")]
        response = {"insert_user": {"returning": [{"id": 1}]}}
        remap_response(flat_paths, response)

        self.assertEqual({"insert_user": {"returning": [{"id": 1}]}}, response)

    def test_missing_endpoint_path(self) -> None:
        flat_paths = [FlatPathMapping.from_dotted_paths("user.insert", "insert_user.returning")]
        for response in ({}, {"insert_user": {}}, {"insert_user": None}, {"insert_user": [1]}):
            with self.assertRaises(MalformedResponseError):
                remap_response(flat_paths, response)

    def test_resolve_path(self) -> None:
        response = {"a": {"b": {"c": 0}}}
        self.assertEqual(0, resolve_path(response, ("a", "b", "c")))
        self.assertEqual(response, resolve_path(response, ()))
        with self.assertRaises(MalformedResponseError):
            resolve_path(response, ("a", "c"))

    def test_assign_path(self) -> None:
        target = {"user": {"insert": []}}
        assign_path(target, ("user", "delete"), [{"id": 2}])
        assign_path(target, ("post",), None)
        self.assertEqual({"user": {"insert": [], "delete": [{"id": 2}]}, "post": None}, target)

        with self.assertRaises(AssertionError):
            assign_path(target, ("user", "insert", "x"), 1)
        with self.assertRaises(AssertionError):
            assign_path(target, (), 1)

    def test_parse_dotted_path(self) -> None:
        self.assertEqual(("insert_user", "returning"), parse_dotted_path("insert_user.returning"))
        with self.assertRaises(AssertionError):
            parse_dotted_path("user..insert")

    def test_flat_path_mapping_str(self) -> None:
        flat_path = FlatPathMapping.from_dotted_paths("user.insert", "insert_user.returning")
        self.assertEqual("user.insert <- insert_user.returning", str(flat_path))


class FlatteningTests(unittest.TestCase):
    def test_single_result_is_flattened(self) -> None:
        response = {"user": [{"id": 1}]}
        self.assertEqual([{"id": 1}], flatten_single_result(("user",), response))

    def test_flattening_disabled(self) -> None:
        response = {"user": [{"id": 1}]}
        self.assertEqual(
            response, flatten_single_result(("user",), response, flatten_single=False)
        )

    def test_several_results_are_not_flattened(self) -> None:
        response = {"user": [{"id": 1}], "post": []}
        for flatten_single in (True, False):
            self.assertEqual(
                response,
                flatten_single_result(("user", "post"), response, flatten_single=flatten_single),
            )

    def test_flattened_value_matches_keyed_value(self) -> None:
        single_response = {"user": [{"id": 1}]}
        multi_response = {"user": [{"id": 1}], "post": [{"id": "p1"}]}
        self.assertEqual(
            flatten_single_result(("user", "post"), multi_response)["user"],
            flatten_single_result(("user",), single_response),
        )

    def test_null_single_result(self) -> None:
        self.assertIsNone(flatten_single_result(("user",), {"user": None}))

    def test_missing_single_result(self) -> None:
        with self.assertRaises(MalformedResponseError):
            flatten_single_result(("user",), {"post": []})
