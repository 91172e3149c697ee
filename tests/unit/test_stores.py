"""Tests for pattern, weight and convergence stores."""

import pytest
import torch

from stdp_detect.errors import StoreCorruptedError, StoreError, StoreShapeError
from stdp_detect.io.stores import (
    ConvergenceStore,
    PatternStore,
    SessionStores,
    WeightStore,
)


class TestPatternStore:
    def test_missing_returns_none(self, small_config, tmp_path):
        assert PatternStore(tmp_path / "pattern.pt").load(small_config) is None

    def test_save_and_load(self, small_config, tmp_path):
        cfg = small_config
        patterns = [torch.rand((cfg.n_involved, cfg.pattern_steps)) < 0.1]
        store = PatternStore(tmp_path / "pattern.pt")
        store.save(patterns)

        loaded = store.load(cfg)
        assert len(loaded) == 1
        assert torch.equal(loaded[0], patterns[0])

    def test_shape_mismatch(self, config_factory, tmp_path):
        store = PatternStore(tmp_path / "pattern.pt")
        store.save([torch.zeros((5, 5), dtype=torch.bool)])
        with pytest.raises(StoreShapeError):
            store.load(config_factory())

    def test_pattern_count_mismatch(self, config_factory, tmp_path):
        cfg = config_factory()
        store = PatternStore(tmp_path / "pattern.pt")
        store.save([torch.zeros((cfg.n_involved, cfg.pattern_steps), dtype=torch.bool)] * 2)
        with pytest.raises(StoreShapeError):
            store.load(cfg)

    def test_wrong_dtype(self, small_config, tmp_path):
        path = tmp_path / "pattern.pt"
        torch.save(torch.zeros((1, small_config.n_involved, small_config.pattern_steps)), path)
        with pytest.raises(StoreCorruptedError):
            PatternStore(path).load(small_config)


class TestWeightStore:
    def test_save_and_load(self, small_config, tmp_path):
        w = torch.rand((small_config.n_post, small_config.n_pre), dtype=torch.float64)
        store = WeightStore(tmp_path / "w.pt")
        store.save(w)
        torch.testing.assert_close(store.load(small_config), w, rtol=0.0, atol=0.0)

    def test_converted_to_config_dtype(self, small_config, tmp_path):
        store = WeightStore(tmp_path / "w.pt")
        store.save(torch.rand((small_config.n_post, small_config.n_pre), dtype=torch.float32))
        assert store.load(small_config).dtype == torch.float64

    def test_shape_mismatch(self, small_config, tmp_path):
        store = WeightStore(tmp_path / "w.pt")
        store.save(torch.rand((small_config.n_post + 1, small_config.n_pre)))
        with pytest.raises(StoreShapeError, match="configuration expects"):
            store.load(small_config)

    def test_corrupted_file(self, small_config, tmp_path):
        path = tmp_path / "w.pt"
        path.write_bytes(b"not a torch file")
        with pytest.raises(StoreError):
            WeightStore(path).load(small_config)

    def test_non_tensor_content(self, small_config, tmp_path):
        path = tmp_path / "w.pt"
        torch.save({"w": torch.zeros(2)}, path)
        with pytest.raises(StoreCorruptedError, match="expected a tensor"):
            WeightStore(path).load(small_config)


class TestConvergenceStore:
    def test_missing_is_empty(self, tmp_path):
        assert ConvergenceStore(tmp_path / "conv.pt").load() == []

    def test_append(self, tmp_path):
        store = ConvergenceStore(tmp_path / "conv.pt")
        store.append(0.3)
        store.append(0.2)
        assert store.load() == pytest.approx([0.3, 0.2])

    def test_atomic_write_leaves_no_temporary_files(self, tmp_path):
        store = ConvergenceStore(tmp_path / "conv.pt")
        for value in (0.4, 0.3, 0.2):
            store.append(value)
        assert [p.name for p in tmp_path.iterdir()] == ["conv.pt"]

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "conv.pt"
        torch.save(torch.zeros((2, 2)), path)
        with pytest.raises(StoreCorruptedError):
            ConvergenceStore(path).load()


class TestSessionStores:
    def test_from_directory(self, tmp_path):
        stores = SessionStores.from_directory(tmp_path / "data")
        assert stores.patterns.path == tmp_path / "data" / "pattern.pt"
        assert stores.weights.path == tmp_path / "data" / "w.pt"
        assert stores.convergence.path == tmp_path / "data" / "conv.pt"
        assert not stores.weights.exists()
