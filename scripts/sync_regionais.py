#!/usr/bin/env python3
"""Script: executa um ciclo de sincronização de regionais sob demanda.

Uso:
  python scripts/sync_regionais.py [<api_url>]

Se `api_url` não for informado, usa `REGIONAIS_API_URL` das configurações.
"""
import sys

from regionais_sync.core.config import settings
from regionais_sync.core.errors import ConfigurationError, SynchronizationError
from regionais_sync.core.logging import configure_logging
from regionais_sync.pipeline.regional_sync import SyncSummary, run_regional_sync


def main(api_url: str | None = None) -> SyncSummary:
    configure_logging(settings.LOG_LEVEL)
    if api_url:
        settings.REGIONAIS_API_URL = api_url
    summary = run_regional_sync()
    print(
        f"Sincronização concluída: inseridas={summary.inserted} atualizadas={summary.updated} "
        f"inativadas={summary.inactivated} reativadas={summary.reactivated}"
    )
    return summary


if __name__ == "__main__":
    try:
        main(sys.argv[1] if len(sys.argv) > 1 else None)
    except (ConfigurationError, SynchronizationError) as exc:
        print(f"Erro: {exc}")
        sys.exit(1)
