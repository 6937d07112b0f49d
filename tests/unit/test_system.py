# tests/unit/test_system.py

"""
Testes unitários dos utilitários de sistema
"""

import os
import stat
from unittest.mock import patch

import pytest

from fogbed_stars.utils import OutputTree, cleanup_system, managed_output_dir, write_file


@pytest.mark.unit
class TestWriteFile:
    """Testes de escrita de arquivos"""

    def test_creates_parent_and_mode(self, tmp_path):
        """Testa criação do diretório e permissão do arquivo"""
        path = write_file(tmp_path / "a" / "b", "secret.json", "{}", 0o600)

        assert path.read_text() == "{}"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_overwrite(self, tmp_path):
        write_file(tmp_path, "f.txt", "old")
        path = write_file(tmp_path, "f.txt", b"new")
        assert path.read_bytes() == b"new"


@pytest.mark.unit
class TestManagedOutputDir:
    """Testes da árvore de saída com limpeza em abort"""

    def test_success_keeps_everything(self, tmp_path):
        root = tmp_path / "out"
        with managed_output_dir(root) as tree:
            (tree.root / "node0").mkdir()

        assert (root / "node0").exists()

    def test_abort_removes_created_root(self, tmp_path):
        """Testa remoção do diretório criado pela execução"""
        root = tmp_path / "out"
        with pytest.raises(RuntimeError):
            with managed_output_dir(root) as tree:
                (tree.root / "node0").mkdir()
                raise RuntimeError("boom")

        assert not root.exists()

    def test_abort_keeps_preexisting(self, tmp_path):
        """Testa que só o que foi criado é removido"""
        root = tmp_path / "out"
        root.mkdir()
        (root / "keep.txt").write_text("mine")

        with pytest.raises(RuntimeError):
            with managed_output_dir(root) as tree:
                (tree.root / "node0").mkdir()
                (tree.root / "gentxs").mkdir()
                raise RuntimeError("boom")

        assert sorted(p.name for p in root.iterdir()) == ["keep.txt"]

    def test_keep_on_failure(self, tmp_path):
        root = tmp_path / "out"
        with pytest.raises(RuntimeError):
            with managed_output_dir(root, keep_on_failure=True) as tree:
                (tree.root / "node0").mkdir()
                raise RuntimeError("boom")

        assert (root / "node0").exists()

    def test_root_is_file(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(NotADirectoryError):
            OutputTree(blocker).open()


@pytest.mark.unit
class TestCleanupSystem:
    """Testes da limpeza de restos do launcher"""

    @patch('fogbed_stars.utils.system.check_system_state')
    def test_already_clean(self, mock_state):
        mock_state.return_value = {"mininet_containers": [], "work_dirs_exist": False}
        assert cleanup_system(force=True) is False

    @patch('fogbed_stars.utils.system.subprocess.run')
    @patch('fogbed_stars.utils.system.check_system_state')
    def test_cancelled(self, mock_state, mock_run):
        """Testa cancelamento na confirmação"""
        mock_state.return_value = {"mininet_containers": ["mn.node0"], "work_dirs_exist": False}

        assert cleanup_system(confirm=lambda: "n") is False
        mock_run.assert_not_called()

    @patch('fogbed_stars.utils.system.subprocess.run')
    @patch('fogbed_stars.utils.system.check_system_state')
    def test_removes_containers(self, mock_state, mock_run):
        mock_state.return_value = {"mininet_containers": ["mn.node0"], "work_dirs_exist": False}

        assert cleanup_system(force=True) is True
        commands = [call[0][0] for call in mock_run.call_args_list]
        assert ["docker", "rm", "-f", "mn.node0"] in commands
