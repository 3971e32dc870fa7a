"""
Catálogo de problemas e ações pré-definidas para planos de ação.

Cada combinação (tipo de problema, severidade) tem uma lista de ações,
quick wins e entregáveis que viram as tarefas iniciais do plano.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from carteira.domain.models import ProblemType, Severity, TaskType


PROBLEM_TYPES: Dict[ProblemType, Dict] = {
    ProblemType.PERFORMANCE: {
        "label": "Problema de Performance",
        "pergunta": "Os resultados estão abaixo do esperado?",
        "indicadores": [
            "CPA acima do esperado",
            "Volume de leads baixo",
            "Conversão ruim",
            "Criativos saturados",
        ],
    },
    ProblemType.EXPECTATIVAS: {
        "label": "Problema de Expectativas",
        "pergunta": "O cliente entende o que é sucesso hoje?",
        "indicadores": [
            "Cliente esperava mais em menos tempo",
            "KPI mal definido",
            "Promessa mal compreendida",
        ],
    },
    ProblemType.ESTRATEGIA: {
        "label": "Problema de Estratégia",
        "pergunta": "Ele sente que recebe valor contínuo?",
        "indicadores": [
            "Funil mal estruturado",
            "Oferta fraca",
            "Público errado",
            "Mudança de posicionamento",
        ],
    },
    ProblemType.VALOR_PERCEBIDO: {
        "label": "Problema de Valor Percebido",
        "pergunta": "Questiona preço / ROI / contrato?",
        "indicadores": [
            "Cliente não vê entregas",
            "Questiona esforço da agência",
            'Sente que "só roda anúncio"',
        ],
    },
}


def _acoes(actions=(), quick_wins=(), deliverables=()) -> Dict[TaskType, List[str]]:
    return {
        TaskType.ACTION: list(actions),
        TaskType.QUICK_WIN: list(quick_wins),
        TaskType.DELIVERABLE: list(deliverables),
    }


_RELATORIOS_ESTRATEGICOS = (
    "Relatórios estratégicos",
    "Conteúdos de valor",
    "Registro de decisões estratégicas",
)

PREDEFINED_ACTIONS: Dict[ProblemType, Dict[Severity, Dict[TaskType, List[str]]]] = {
    ProblemType.PERFORMANCE: {
        Severity.LEVE: _acoes(
            actions=(
                "Diagnóstico técnico rápido (campanhas, públicos, criativos, funil)",
                "Troca ou variação de criativos (inclui produtora)",
                "Ajuste de orçamento e lances",
                "Revisão de copy e CTA",
                "Testes estruturados (A/B de criativos e públicos)",
                "Criar 1 campanha de oportunidade (oferta âncora)",
                "Otimização contínua",
                "Comunicação e acompanhamento próximo no grupo ou através de ligação",
            ),
            quick_wins=(
                "Novo criativo no ar em até 7 dias",
                "Pequena melhora em CTR ou CPL",
            ),
            deliverables=(
                "Relatório visual simples",
                "Lista de testes realizados",
                "Próximos testes priorizados",
            ),
        ),
        Severity.MODERADO: _acoes(
            actions=(
                "Novo criativo + nova promessa",
                "Campanha de baixo risco (retargeting / fundo de funil)",
            ),
            deliverables=(
                "Mapa de funil",
                "Relatório de aprendizados",
                "Roadmap de crescimento",
            ),
        ),
        Severity.CRITICO: _acoes(
            actions=(
                "Ação tática focada em conversão direta",
                "Criativo gravado (produto, bastidor, autoridade)",
            ),
            deliverables=(
                "Plano de recuperação",
                "Relatório executivo",
                "Nova tese de crescimento",
            ),
        ),
    },
    ProblemType.EXPECTATIVAS: {
        Severity.LEVE: _acoes(
            actions=(
                "Alinhamento rápido de KPIs",
                "Reexplicação da estratégia",
                "Ajuste de discurso",
                "Comunicação contínua com o cliente para alinhar expectativas",
                "Análise de comportamento e adaptação dinâmica",
            ),
            quick_wins=(
                "Clareza = redução imediata de atrito",
                "Reforço educativo",
                "Checkpoints mensais de expectativa",
            ),
        ),
        Severity.MODERADO: _acoes(
            actions=(
                "Novo KPI intermediário (vitória visível)",
                "Recontrato de metas",
                "Micro entregas visíveis",
            ),
        ),
        Severity.CRITICO: _acoes(
            actions=(
                "Transparência gera alívio imediato",
                "Novo plano estratégico",
                "Metas realistas e escaláveis",
                "Decisão conjunta de continuidade",
            ),
        ),
    },
    ProblemType.ESTRATEGIA: {
        Severity.LEVE: _acoes(
            deliverables=(
                "Registro de hipóteses",
                "Resultados dos testes",
                "Estratégia otimizada",
            ),
        ),
        Severity.MODERADO: _acoes(
            deliverables=(
                "Novo funil",
                "Proposta de valor revisada",
                "Roadmap estratégico",
            ),
        ),
        Severity.CRITICO: _acoes(
            actions=(
                "Desconstrução da estratégia atual + identificação de falhas estruturais",
                "Alinhamento com liderança do cliente",
                "Criação de nova tese estratégica",
            ),
        ),
    },
    ProblemType.VALOR_PERCEBIDO: {
        Severity.LEVE: _acoes(
            deliverables=(
                "Relatório visual",
                "Comunicação educativa",
            ),
        ),
        Severity.MODERADO: _acoes(deliverables=_RELATORIOS_ESTRATEGICOS),
        Severity.CRITICO: _acoes(deliverables=_RELATORIOS_ESTRATEGICOS),
    },
}


def tarefas_predefinidas(problem_type: ProblemType, severity: Severity) -> List[Tuple[TaskType, str]]:
    """Tarefas iniciais na ordem: ações, quick wins, entregáveis."""
    por_tipo = PREDEFINED_ACTIONS[ProblemType(problem_type)][Severity(severity)]
    out: List[Tuple[TaskType, str]] = []
    for task_type in (TaskType.ACTION, TaskType.QUICK_WIN, TaskType.DELIVERABLE):
        out.extend((task_type, titulo) for titulo in por_tipo[task_type])
    return out
