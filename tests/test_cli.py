from pathlib import Path

from typer.testing import CliRunner

from carteira.adapters.cli import app

runner = CliRunner()


def _invoke(db_path: Path, *args):
    return runner.invoke(app, [*args, "--db", str(db_path)])


def test_cli_migrate_and_params(tmp_path: Path):
    db_path = tmp_path / "carteira_test.sqlite"
    result = runner.invoke(app, ["migrate", "--db", str(db_path)])
    assert result.exit_code == 0, result.output

    result = _invoke(db_path, "params", "set", "--dias-aviso-contrato", "45")
    assert result.exit_code == 0, result.output

    result = _invoke(db_path, "params", "get", "dias_aviso_contrato")
    assert result.exit_code == 0
    assert result.stdout.strip() == "45"

    result = _invoke(db_path, "params", "show")
    assert result.exit_code == 0
    assert "dias_aviso_contrato" in result.stdout


def test_cli_params_set_sem_nada(tmp_path: Path):
    result = _invoke(tmp_path / "c.sqlite", "params", "set")
    assert result.exit_code == 1


def test_cli_fluxo_venda_e_churn(tmp_path: Path):
    db_path = tmp_path / "carteira_test.sqlite"

    result = _invoke(db_path, "clientes", "novo", "Acme", "--pct", "30", "--produto", "trafego")
    assert result.exit_code == 0, result.output
    assert "Acme" in result.stdout

    result = _invoke(db_path, "vendas", "registrar", "1", "1.000,00")
    assert result.exit_code == 0, result.output
    assert "R$ 100,00" in result.stdout

    result = _invoke(db_path, "vendas", "upsell", "1", "social", "500")
    assert result.exit_code == 0, result.output
    assert "R$ 35,00" in result.stdout

    result = _invoke(db_path, "churn", "iniciar", "1")
    assert result.exit_code == 0, result.output

    result = _invoke(db_path, "churn", "iniciar", "1")
    assert result.exit_code == 1
    assert "ConflictError" in result.stdout

    result = _invoke(db_path, "clientes", "restaurar", "1")
    assert result.exit_code == 0, result.output
    assert "Novo Cliente" in result.stdout


def test_cli_venda_invalida(tmp_path: Path):
    db_path = tmp_path / "carteira_test.sqlite"
    _invoke(db_path, "clientes", "novo", "Acme", "--pct", "30")
    result = _invoke(db_path, "vendas", "registrar", "1", "0")
    assert result.exit_code == 1
    assert "ValidationError" in result.stdout


def test_cli_cliente_inexistente(tmp_path: Path):
    result = _invoke(tmp_path / "c.sqlite", "churn", "iniciar", "42")
    assert result.exit_code == 1
    assert "NotFoundError" in result.stdout


def test_cli_planos(tmp_path: Path):
    db_path = tmp_path / "carteira_test.sqlite"
    _invoke(db_path, "clientes", "novo", "Acme")

    result = _invoke(db_path, "planos", "criar", "1", "--tipo", "performance", "--severidade", "critico")
    assert result.exit_code == 1
    assert "ValidationError" in result.stdout

    result = _invoke(
        db_path, "planos", "criar", "1",
        "--tipo", "performance", "--severidade", "critico", "--indicador", "CPA alto",
    )
    assert result.exit_code == 0, result.output

    result = _invoke(db_path, "planos", "toggle", "1", "--por", "ana")
    assert result.exit_code == 0, result.output
    assert "concluída" in result.stdout

    result = _invoke(db_path, "planos", "status", "1", "completed")
    assert result.exit_code == 0, result.output
    assert "completed" in result.stdout

    result = _invoke(db_path, "planos", "status", "1", "cancelled")
    assert result.exit_code == 1
    assert "InvalidStateError" in result.stdout

    result = _invoke(db_path, "planos", "excluir", "1")
    assert result.exit_code == 0, result.output


def test_cli_relatorios(tmp_path: Path):
    db_path = tmp_path / "carteira_test.sqlite"
    _invoke(db_path, "clientes", "novo", "Acme", "--pct", "30")
    _invoke(db_path, "vendas", "registrar", "1", "900")

    result = _invoke(db_path, "comissoes", "listar")
    assert result.exit_code == 0, result.output
    assert "gestor_ads" in result.stdout

    result = _invoke(db_path, "rel", "resumo", "2024-01")
    assert result.exit_code == 0, result.output

    result = _invoke(db_path, "churn", "notificacoes")
    assert result.exit_code == 0, result.output
    assert "Nenhum dado encontrado" in result.stdout


def test_cli_logs_tipo_desconhecido():
    result = runner.invoke(app, ["logs", "inexistente"])
    assert result.exit_code == 0
    assert "Log inexistente não encontrado." in result.stdout


def test_cli_churn_listar(tmp_path: Path):
    db_path = tmp_path / "carteira_test.sqlite"
    _invoke(db_path, "clientes", "novo", "Acme", "--produto", "trafego")
    _invoke(db_path, "clientes", "novo", "Beta", "--produto", "social")
    _invoke(db_path, "churn", "iniciar", "1")

    result = _invoke(db_path, "churn", "listar")
    assert result.exit_code == 0, result.output
    assert "Distratos Globais em Aberto" in result.stdout
    assert "Acme" in result.stdout
    assert "Nenhum dado encontrado" in result.stdout
    assert "Beta" not in result.stdout


def test_cli_entradas_desconhecidas_viram_erro_de_validacao(tmp_path: Path):
    db_path = tmp_path / "carteira_test.sqlite"
    _invoke(db_path, "clientes", "novo", "Acme")

    result = _invoke(db_path, "vendas", "upsell", "1", "trafego", "500", "--papel", "estagiario")
    assert result.exit_code == 1
    assert "ValidationError" in result.stdout

    result = _invoke(db_path, "planos", "listar", "--status", "bogus")
    assert result.exit_code == 1
    assert "ValidationError" in result.stdout
