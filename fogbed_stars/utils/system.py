# fogbed_stars/utils/system.py

"""
Utilitários de sistema: escrita de arquivos, árvore de saída com limpeza
em caso de falha e limpeza de restos de execuções Fogbed anteriores
"""

import os
import subprocess
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Set, Union

from fogbed_stars.utils.logging import get_logger

logger = get_logger('system')

DIR_PERM = 0o755
FILE_PERM = 0o644
SECRET_FILE_PERM = 0o600

LAUNCH_WORK_DIR = "/tmp/fogbed_stars_workdir"


def write_file(
    directory: Union[str, Path],
    name: str,
    contents: Union[str, bytes],
    mode: int = FILE_PERM,
) -> Path:
    """
    Escreve arquivo criando o diretório se necessário

    O arquivo já nasce com `mode` (sem janela com permissão aberta).
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True, mode=DIR_PERM)

    if isinstance(contents, str):
        contents = contents.encode("utf-8")

    path = directory / name
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as f:
        f.write(contents)
    os.chmod(path, mode)

    logger.debug(f"Wrote {path} ({len(contents)} bytes, mode {oct(mode)})")
    return path


class OutputTree:
    """
    Árvore de saída de um comando

    Guarda o que existia antes para, num abort, remover só o que esta
    execução criou (ou o diretório inteiro, se foi criado por ela).
    """

    def __init__(self, root: Union[str, Path], keep_on_failure: bool = False):
        self.root = Path(root)
        self.keep_on_failure = keep_on_failure
        self.created_root = False
        self._preexisting: Set[str] = set()

    def open(self) -> "OutputTree":
        if self.root.exists():
            if not self.root.is_dir():
                raise NotADirectoryError(f"Output path is not a directory: {self.root}")
            self._preexisting = {p.name for p in self.root.iterdir()}
        else:
            self.root.mkdir(parents=True, mode=DIR_PERM)
            self.created_root = True
        logger.debug(f"Output tree opened: {self.root} (created={self.created_root})")
        return self

    def created_entries(self) -> List[Path]:
        if not self.root.exists():
            return []
        return sorted(p for p in self.root.iterdir() if p.name not in self._preexisting)

    def cleanup(self) -> None:
        """Remove (best-effort) o que esta execução criou"""
        if self.created_root:
            targets = [self.root]
        else:
            targets = self.created_entries()

        for target in targets:
            try:
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                else:
                    target.unlink()
                logger.debug(f"Removed {target}")
            except OSError as e:
                logger.warning(f"⚠️ Could not remove {target}: {e}")


@contextmanager
def managed_output_dir(root: Union[str, Path], keep_on_failure: bool = False) -> Iterator[OutputTree]:
    """
    Aquisição com escopo da árvore de saída

    Sucesso completo mantém tudo; qualquer exceção remove o que foi criado
    (a menos de keep_on_failure) e é repropagada.
    """
    tree = OutputTree(root, keep_on_failure=keep_on_failure).open()
    try:
        yield tree
    except BaseException:
        if tree.keep_on_failure:
            logger.warning(f"⚠️ Keeping partial output for debugging: {tree.root}")
        else:
            logger.warning(f"🧹 Aborting: removing partial output under {tree.root}")
            tree.cleanup()
        raise


# ---------- Restos de execuções Fogbed ----------

def check_system_state() -> Dict[str, object]:
    """
    Verifica estado atual do sistema

    Returns:
        Dict com containers Mininet e diretório de trabalho do launcher
    """
    state: Dict[str, object] = {
        "mininet_containers": [],
        "work_dirs_exist": False,
    }

    try:
        result = subprocess.run(
            ["docker", "ps", "-a", "--filter", "name=mn.", "--format", "{{.Names}}"],
            capture_output=True,
            text=True,
        )
        if result.stdout.strip():
            state["mininet_containers"] = result.stdout.strip().split('\n')
    except FileNotFoundError:
        logger.warning("⚠️ docker binary not found in PATH")

    if os.path.exists(LAUNCH_WORK_DIR):
        state["work_dirs_exist"] = True
        state["work_dir_size"] = _get_dir_size(LAUNCH_WORK_DIR)

    return state


def cleanup_system(force: bool = False, confirm: Optional[Callable[[], str]] = None) -> bool:
    """
    Limpa containers Mininet e diretório de trabalho do launcher

    Args:
        force: Se True, não pede confirmação
        confirm: Função de confirmação (default: input())

    Returns:
        True se algo foi removido
    """
    state = check_system_state()

    if not state["mininet_containers"] and not state["work_dirs_exist"]:
        logger.info("✅ System already clean")
        return False

    if state["mininet_containers"]:
        logger.info(f"  - {len(state['mininet_containers'])} Mininet container(s)")
    if state["work_dirs_exist"]:
        logger.info(f"  - Work directory ({state['work_dir_size']} MB)")

    if not force:
        confirm = confirm or (lambda: input("\n⚠️  Confirma limpeza? (y/N): "))
        if confirm().strip().lower() != 'y':
            logger.info("Cancelled")
            return False

    logger.info("🧹 Cleaning...")

    subprocess.run(["sudo", "mn", "-c"], capture_output=True)

    if state["mininet_containers"]:
        subprocess.run(
            ["docker", "rm", "-f"] + state["mininet_containers"],
            capture_output=True
        )

    if os.path.exists(LAUNCH_WORK_DIR):
        shutil.rmtree(LAUNCH_WORK_DIR)

    logger.info("✅ Cleanup done")
    return True


def _get_dir_size(path: str) -> float:
    """Retorna tamanho do diretório em MB"""
    total = 0
    for dirpath, dirnames, filenames in os.walk(path):
        for f in filenames:
            fp = os.path.join(dirpath, f)
            if os.path.exists(fp):
                total += os.path.getsize(fp)
    return round(total / (1024 * 1024), 2)
