# carteira/usecases/planos_acao.py
"""
UC: planos de ação de sucesso do cliente.

- criar plano (prazo pela severidade + checklist pré-definido)
- adicionar / alternar tarefas
- concluir ou cancelar (somente a partir de ``active``)
- excluir (remove as tarefas junto)

Concluir todas as tarefas não conclui o plano: a transição de status é
sempre explícita.
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Iterable, List, Optional

from carteira.adapters.parsers import converter_enum
from carteira.config import DB_PATH
from carteira.domain.catalogo import tarefas_predefinidas
from carteira.domain.errors import (
    ConflictError, InvalidStateError, NotFoundError, ValidationError
)
from carteira.domain.formulas import plan_due_date
from carteira.domain.models import ActionPlan, ActionPlanTask, PlanStatus, ProblemType, Severity, TaskType
from carteira.domain.policies import instante
from carteira.infra.db import connect
from carteira.infra.logger import log_database_operation, log_operacao, log_transaction
from carteira.infra.repositories import PlanoAcaoRepo, TarefaRepo
from carteira.usecases.clientes import obter_cliente


def _obter_plano(c: sqlite3.Connection, plan_id: int) -> ActionPlan:
    plano = PlanoAcaoRepo(c).get(plan_id)
    if plano is None:
        raise NotFoundError(f"Plano de ação {plan_id} não encontrado.")
    plano.tasks = TarefaRepo(c).list_by_plan(plan_id)
    return plano


def criar_plano(
    client_id: int,
    problem_type,
    severity,
    indicators: Iterable[str],
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
    com_tarefas_predefinidas: bool = True,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> ActionPlan:
    """Cria um plano ativo com prazo de 30/60/90 dias conforme a severidade.

    Raises:
        ValidationError: sem indicadores, tipo de problema ou severidade inválidos.
        NotFoundError: cliente inexistente.
    """
    agora = instante(agora)
    dados = {"client_id": client_id, "problem_type": str(problem_type), "severity": str(severity)}
    try:
        tipo = converter_enum(ProblemType, problem_type, "Tipo de problema")
        sev = converter_enum(Severity, severity, "Severidade")
        indicadores: List[str] = []
        for ind in indicators or []:
            ind = (ind or "").strip()
            if ind and ind not in indicadores:
                indicadores.append(ind)
        if not indicadores:
            raise ValidationError("Informe ao menos um indicador.")

        with connect(db_path, immediate=True) as c:
            obter_cliente(c, client_id)
            plan_id = PlanoAcaoRepo(c).insert({
                "client_id": client_id,
                "problem_type": tipo,
                "severity": sev,
                "indicators": indicadores,
                "notes": notes,
                "created_by": created_by,
                "created_at": agora,
                "due_date": plan_due_date(agora, sev),
            })
            tarefas = tarefas_predefinidas(tipo, sev) if com_tarefas_predefinidas else []
            TarefaRepo(c).insert_many(plan_id, tarefas)
            log_database_operation("cs_action_plans", "INSERT", 1, plan_id=plan_id)
            log_database_operation("cs_action_plan_tasks", "INSERT_MANY", len(tarefas), plan_id=plan_id)
            plano = _obter_plano(c, plan_id)

        log_operacao("planos", "criar", client_id, plan_id=plano.id, severidade=sev.value)
        log_transaction("criar_plano", dados, result={"plan_id": plano.id})
        return plano
    except Exception as e:
        log_transaction("criar_plano", dados, error=str(e))
        raise


def obter_plano(plan_id: int, db_path: str = DB_PATH) -> ActionPlan:
    with connect(db_path) as c:
        return _obter_plano(c, plan_id)


def adicionar_tarefa(
    plan_id: int,
    title: str,
    task_type=TaskType.ACTION,
    db_path: str = DB_PATH,
) -> ActionPlanTask:
    """Acrescenta uma tarefa ao final do checklist de um plano ativo."""
    titulo = (title or "").strip()
    if not titulo:
        raise ValidationError("Título da tarefa é obrigatório.")
    tipo = converter_enum(TaskType, task_type, "Tipo de tarefa")

    with connect(db_path, immediate=True) as c:
        plano = _obter_plano(c, plan_id)
        if plano.status != PlanStatus.ACTIVE:
            raise InvalidStateError(f"Plano {plan_id} está '{plano.status.value}'; não aceita novas tarefas.")
        repo = TarefaRepo(c)
        repo.insert_many(plan_id, [(tipo, titulo)], start=repo.next_position(plan_id))
        tarefa = repo.list_by_plan(plan_id)[-1]

    log_operacao("planos", "adicionar_tarefa", plano.client_id, plan_id=plan_id, task_id=tarefa.id)
    return tarefa


def alternar_tarefa(
    task_id: int,
    completed: Optional[bool] = None,
    completed_by: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> ActionPlanTask:
    """Marca/desmarca uma tarefa; sem ``completed`` inverte o estado atual.

    O status do plano nunca é alterado aqui.
    """
    agora = instante(agora)
    with connect(db_path) as c:
        repo = TarefaRepo(c)
        tarefa = repo.get(task_id)
        if tarefa is None:
            raise NotFoundError(f"Tarefa {task_id} não encontrada.")
        novo = (not tarefa.is_completed) if completed is None else bool(completed)
        repo.set_completed(task_id, novo, agora, completed_by)
        log_database_operation("cs_action_plan_tasks", "UPDATE", 1, task_id=task_id, is_completed=novo)
        atualizada = repo.get(task_id)

    log_operacao("planos", "alternar_tarefa", None, plan_id=tarefa.plan_id, task_id=task_id, concluida=novo)
    return atualizada


def atualizar_status_plano(
    plan_id: int,
    status,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> ActionPlan:
    """Conclui ou cancela um plano ativo.

    Raises:
        ValidationError: status de destino diferente de completed/cancelled.
        NotFoundError: plano inexistente.
        InvalidStateError: plano não está ativo.
        ConflictError: outra transição venceu a atualização condicional.
    """
    agora = instante(agora)
    novo = converter_enum(PlanStatus, status, "Status")
    if novo == PlanStatus.ACTIVE:
        raise ValidationError("Um plano só pode ser concluído ou cancelado.")
    dados = {"plan_id": plan_id, "status": novo.value, "responsavel": responsavel}
    try:
        with connect(db_path) as c:
            plano = _obter_plano(c, plan_id)
            if plano.status != PlanStatus.ACTIVE:
                raise InvalidStateError(
                    f"Plano {plan_id} está '{plano.status.value}'; só planos ativos mudam de status."
                )
            concluido_em = agora if novo == PlanStatus.COMPLETED else None
            if PlanoAcaoRepo(c).update_status(plan_id, novo, concluido_em) == 0:
                raise ConflictError(f"Plano {plan_id} foi alterado por outra operação.")
            log_database_operation("cs_action_plans", "UPDATE", 1, plan_id=plan_id, status=novo.value)
            atualizado = _obter_plano(c, plan_id)

        log_operacao("planos", "status", plano.client_id, plan_id=plan_id, status=novo.value)
        log_transaction("atualizar_status_plano", dados, result=novo.value)
        return atualizado
    except Exception as e:
        log_transaction("atualizar_status_plano", dados, error=str(e))
        raise


def excluir_plano(plan_id: int, responsavel: Optional[str] = None, db_path: str = DB_PATH) -> None:
    """Exclui o plano (qualquer status) e suas tarefas."""
    with connect(db_path) as c:
        plano = _obter_plano(c, plan_id)
        PlanoAcaoRepo(c).delete(plan_id)
        log_database_operation("cs_action_plans", "DELETE", 1, plan_id=plan_id, tarefas=len(plano.tasks))

    log_operacao("planos", "excluir", plano.client_id, plan_id=plan_id, responsavel=responsavel)
