"""Default service catalog of the clinic.

Loaded once at provisioning time (``scripts/seed_servicos.py`` or
``SEED_SERVICES=1`` on startup). Request handlers never read this list.
"""
import logging

from sqlalchemy.orm import Session

from app.models.servico import Servico as ServicoModel, ServicoStatus

logger = logging.getLogger(__name__)

SERVICOS_PADRAO = [
    {
        'name': 'Limpeza de Pele',
        'category': 'Estética Facial',
        'price': 120.00,
        'duration_minutes': 60,
        'description': 'Limpeza profunda da pele facial',
    },
    {
        'name': 'Massagem Relaxante',
        'category': 'Massagem',
        'price': 120.00,
        'duration_minutes': 60,
        'description': 'Massagem relaxante para alívio do stress',
    },
    {
        'name': 'Pós Operatório Domiciliar 10 sessões com laser',
        'category': 'Pós Operatório',
        'price': 1300.00,
        'duration_minutes': 90,
        'description': 'Pacote completo de 10 sessões pós operatório com laser domiciliar',
    },
    {
        'name': 'Pós Operatório com Kinesio',
        'category': 'Pós Operatório',
        'price': 1500.00,
        'duration_minutes': 120,
        'description': 'Tratamento pós operatório com aplicação de kinesio',
    },
    {
        'name': 'Pacote Simples - 4 sessões de Massagem',
        'category': 'Pacotes',
        'price': 450.00,
        'duration_minutes': 240,
        'description': 'Pacote com 4 sessões de massagem. Benefícios: Reduz medidas, diminui inchaços, '
                       'estimula circulação, alivia estresse, relaxa o corpo, melhora silhueta. Validade: 60 dias',
    },
    {
        'name': 'Pacote Premium - 10 sessões de Massagem',
        'category': 'Pacotes',
        'price': 800.00,
        'duration_minutes': 600,
        'description': 'Pacote premium com 10 sessões de massagem. Benefícios: Reduz medidas, diminui inchaços, '
                       'estimula circulação, alivia estresse, relaxa o corpo, melhora silhueta. Validade: 60 dias',
    },
]


def seed_servicos(db: Session):
    """Insert the default catalog when the services table is empty.

    Returns the inserted rows (empty when the table already had data).
    """
    if db.query(ServicoModel.id).first() is not None:
        logger.info("Tabela de serviços já possui dados; catálogo não inserido")
        return []
    inseridos = []
    for item in SERVICOS_PADRAO:
        s = ServicoModel(status=ServicoStatus.active, **item)
        db.add(s)
        inseridos.append(s)
    db.commit()
    for s in inseridos:
        db.refresh(s)
        logger.info("Serviço inserido: %s", s.name)
    return inseridos
