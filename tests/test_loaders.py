"""Tests for input files and the output document (netcontrol.loaders)."""

import datetime
import json
from pathlib import Path

import pytest

from netcontrol.loaders import (
    default_output_path,
    nodes_from_edges,
    output_document,
    read_edges,
    read_node_list,
    read_parameters,
    restrict_to_network,
    write_output,
)
from netcontrol.parameters import Parameters
from netcontrol.result import Result


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestReadEdges:

    def test_parses_pairs(self, tmp_path):
        path = _write(tmp_path, "net.txt", "A;B\nB;C\n")
        assert read_edges(path) == [("A", "B"), ("B", "C")]

    def test_skips_malformed_and_duplicates(self, tmp_path):
        path = _write(tmp_path, "net.txt",
                      "A;B\n\nlonely\n;C\nB;\nA;B\nB;C;extra\n")
        assert read_edges(path) == [("A", "B"), ("B", "C")]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_edges(tmp_path / "absent.txt")


class TestReadNodes:

    def test_skips_empty_and_duplicates(self, tmp_path):
        path = _write(tmp_path, "targets.txt", "C\n\nA\nC\n")
        assert read_node_list(path) == ["C", "A"]

    def test_nodes_from_edges_order(self):
        edges = [("B", "C"), ("A", "B"), ("C", "D")]
        assert nodes_from_edges(edges) == ["B", "A", "C", "D"]

    def test_restrict_to_network(self):
        assert restrict_to_network(["Z", "C", "A"], ["A", "B", "C"]) == ["C", "A"]


class TestReadParameters:

    def test_camel_case_file(self, tmp_path):
        path = _write(tmp_path, "params.json", json.dumps({
            "RandomSeed": 4, "MaximumPathLength": 2,
            "RankComputations": 3, "MaximumDegreeOfParallelism": 1}))
        assert read_parameters(path) == Parameters(4, 2, 3, 1)

    def test_invalid_json(self, tmp_path):
        path = _write(tmp_path, "params.json", "{not json")
        with pytest.raises(ValueError):
            read_parameters(path)

    def test_not_an_object(self, tmp_path):
        path = _write(tmp_path, "params.json", "[1, 2]")
        with pytest.raises(ValueError):
            read_parameters(path)

    def test_unknown_key(self, tmp_path):
        path = _write(tmp_path, "params.json", '{"Depth": 3}')
        with pytest.raises(KeyError):
            read_parameters(path)


class TestOutput:

    def test_default_output_path(self):
        now = datetime.datetime(2024, 3, 5, 14, 7, 9)
        path = default_output_path(Path("/data/network.txt"), now)
        assert path == Path("/data/network_Output_20240305140709.json")

    def test_document_and_write(self, tmp_path):
        result = Result(node_count=3, edge_count=2, target_node_count=1,
                        source_node_count=1, maximum_rank=1,
                        solution_node_count=1, solution_nodes=["A"])
        params = Parameters(1, 2, 3, 1)
        document = output_document("dir/net.txt", "dir/tgt.txt",
                                   "dir/src.txt", params, result)
        assert document["name"] == "net"
        assert document["targets"] == "tgt"
        assert document["sources"] == "src"

        path = write_output(tmp_path / "out.json", document)
        loaded = json.loads(path.read_text(encoding="utf-8"))
        assert loaded["parameters"]["maximum_path_length"] == 2
        assert loaded["result"]["solution_nodes"] == ["A"]
