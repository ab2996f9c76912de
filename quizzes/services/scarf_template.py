"""The SCARF leadership assessment shipped as a ready-made quiz.

The template has a diagnostic block followed by the same 25 SCARF
statements asked three times (C-level, managers, the respondent).  Group
orders 1 to 3 are what :class:`~quizzes.services.scarf.ScarfScoringStrategy`
uses to find the blocks, so they must not be renumbered.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth.models import User
from django.db import transaction

from ..models import Option, ProfileRange, Question, QuestionGroup, Quiz

logger = logging.getLogger(__name__)

SCARF_QUIZ_TITLE = 'Avaliação SCARF de Liderança'
SCARF_QUIZ_DESCRIPTION = (
    'Questionário para avaliar compatibilidade entre perfil de liderança organizacional e '
    'preferências individuais usando o modelo SCARF (Status, Certainty, Autonomy, '
    'Relatedness, Fairness)'
)

# Five statements per dimension, in Status/Certainty/Autonomy/Relatedness/Fairness order.
SCARF_STATEMENTS = (
    'Sinto que minha posição na organização é respeitada pelos outros',
    'Tenho orgulho do status que ocupo na empresa',
    'Outros reconhecem minha expertise e conhecimento',
    'Sinto que tenho influência nas decisões importantes',
    'Minha opinião é valorizada nas reuniões e discussões',
    'Tenho clareza sobre o que é esperado de mim no trabalho',
    'As mudanças na organização são comunicadas de forma clara',
    'Sinto segurança sobre o futuro da minha carreira na empresa',
    'Os processos e procedimentos são bem definidos',
    'Tenho previsibilidade sobre meus resultados e metas',
    'Tenho liberdade para decidir como executar meu trabalho',
    'Posso influenciar decisões que afetam minha área de atuação',
    'Tenho controle sobre meu horário e forma de trabalhar',
    'Sinto que posso expressar minhas ideias livremente',
    'Tenho autonomia para resolver problemas do dia a dia',
    'Sinto que pertenço ao grupo e à cultura da organização',
    'Tenho relacionamentos positivos com meus colegas',
    'Existe colaboração e apoio mútuo entre as equipes',
    'Sinto que posso contar com meus colegas quando preciso',
    'Há um senso de comunidade e união na organização',
    'As decisões na organização são tomadas de forma justa',
    'Os recursos e oportunidades são distribuídos equitativamente',
    'Existe transparência nos processos de avaliação e promoção',
    'Sinto que sou tratado com respeito e dignidade',
    'As regras são aplicadas de forma consistente para todos',
)

DIAGNOSTIC_STATEMENTS = (
    'A organização possui uma visão estratégica clara e bem comunicada',
    'Os objetivos organizacionais são amplamente conhecidos pelos colaboradores',
    'Existe alinhamento entre as diferentes áreas da organização',
    'A cultura organizacional é forte e bem definida',
    'A organização investe adequadamente no desenvolvimento de lideranças',
    'Existe um processo estruturado de sucessão de líderes',
    'A comunicação entre líderes e equipes é efetiva',
    'Os líderes atuais demonstram competências necessárias para o futuro',
    'A organização se adapta rapidamente às mudanças do mercado',
    'Existe um ambiente de confiança e transparência na liderança',
)

LIKERT_OPTIONS = (
    ('Discordo totalmente', 1),
    ('Discordo parcialmente', 2),
    ('Neutro / Nem concordo, nem discordo', 3),
    ('Concordo parcialmente', 4),
    ('Concordo totalmente', 5),
)

# (title, description, weight, order, question prefix, statements)
SCARF_BLOCKS = (
    (
        'Momento Estratégico da Organização',
        'Avaliação diagnóstica da situação atual da liderança organizacional',
        0, 0, '', DIAGNOSTIC_STATEMENTS,
    ),
    (
        'SCARF - C-Level',
        'Avaliação das dimensões SCARF para o nível executivo (C-Level)',
        2, 1, '[C-Level] ', SCARF_STATEMENTS,
    ),
    (
        'SCARF - Gestores',
        'Avaliação das dimensões SCARF para gestores',
        1, 2, '[Gestores] ', SCARF_STATEMENTS,
    ),
    (
        'Perfil de Liderança Preferido',
        'Suas preferências pessoais nas dimensões SCARF',
        1, 3, '[Seu Perfil] ', SCARF_STATEMENTS,
    ),
)

SCARF_PROFILE_RANGES = (
    (80, 100, 'Fit Elevado',
     'Excelente compatibilidade entre seu perfil e o perfil de liderança da organização. '
     'Há forte alinhamento entre suas preferências e o estilo de liderança predominante.'),
    (60, 79, 'Fit Moderado',
     'Boa compatibilidade com algumas áreas de desenvolvimento. Existe alinhamento na maioria '
     'das dimensões, com oportunidades específicas de ajuste.'),
    (40, 59, 'Fit em Desenvolvimento',
     'Compatibilidade moderada que requer atenção e desenvolvimento. Há diferenças '
     'significativas que podem ser trabalhadas com foco e dedicação.'),
    (0, 39, 'Fit Desafiador',
     'Baixa compatibilidade que requer revisão estratégica. Há diferenças substanciais que '
     'podem impactar a efetividade da liderança e requerem intervenções específicas.'),
)


@transaction.atomic
def create_scarf_quiz(owner: Optional[User] = None) -> Quiz:
    """Create the SCARF assessment and return the stored quiz."""

    quiz = Quiz.objects.create(
        owner=owner,
        title=SCARF_QUIZ_TITLE,
        description=SCARF_QUIZ_DESCRIPTION,
        scoring_strategy=Quiz.ScoringStrategy.SCARF,
    )
    position = 0
    options = []
    for title, description, weight, order, prefix, statements in SCARF_BLOCKS:
        group = QuestionGroup.objects.create(
            quiz=quiz,
            title=title,
            description=description,
            weight=weight,
            order_index=order,
        )
        for text in statements:
            question = Question.objects.create(
                quiz=quiz,
                group=group,
                text=f'{prefix}{text}',
                question_type=Question.QuestionType.MULTIPLE_CHOICE,
                required=True,
                order_index=position,
            )
            position += 1
            options.extend(
                Option(question=question, text=label, weight=value, order_index=index)
                for index, (label, value) in enumerate(LIKERT_OPTIONS)
            )
    Option.objects.bulk_create(options)
    ProfileRange.objects.bulk_create(
        [
            ProfileRange(quiz=quiz, min_score=low, max_score=high, profile=profile,
                         description=description, order_index=index)
            for index, (low, high, profile, description) in enumerate(SCARF_PROFILE_RANGES)
        ]
    )
    logger.info('Created SCARF quiz %s with %s questions', quiz.pk, position)
    return quiz
