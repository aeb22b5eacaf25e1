# fleet_panel/reference.py
"""
Static reference tables for the Trucks Control protocol (API v6.7).

Three read-only lookups:

- EQUIPMENT_TYPES: tracker hardware code (``eqp``) -> model name
- EVENT_FLAGS: alert flag field (``evtN``) -> description, severity, icon
- MESSAGE_ORIGINS: message origin code (``ori``) -> channel name

Every event flag is an optional bit that the upstream only sends when it
differs from its default (0). ``evt4`` is absent on purpose: it carries the
three-valued ignition state and is decoded by the normalizer, not listed as
an alert. ``evt26`` (temperature value) was retired because the temperature
is already a field of its own; snapshots holding it drop it on load.
"""

from enum import Enum
from types import MappingProxyType
from typing import Final, NamedTuple

__all__: list[str] = [
    'EQUIPMENT_TYPES',
    'EVENT_FLAGS',
    'MESSAGE_ORIGINS',
    'EventInfo',
    'Severity',
    'equipment_name',
    'event_info',
    'origin_name',
]


class Severity(str, Enum):
    """Alert severity, most to least urgent."""

    CRITICO = 'critico'
    ALTO = 'alto'
    MEDIO = 'medio'
    INFO = 'info'


class EventInfo(NamedTuple):
    description: str
    severity: Severity
    icon: str


_C: Final = Severity.CRITICO
_A: Final = Severity.ALTO
_M: Final = Severity.MEDIO
_I: Final = Severity.INFO


EQUIPMENT_TYPES: Final[MappingProxyType[int, str]] = MappingProxyType({
    1: 'Satelite System',
    2: 'Hybrid System',
    3: 'Light GSM 1',
    4: 'Satelite Sky',
    6: 'Smart Híbrido',
    7: 'SpyTrack',
    8: 'Smart GSM',
    9: 'Slim GSM 1',
    10: 'Light GSM 2',
    11: 'Slim GSM 2',
    12: 'Trailer GSM',
    13: 'Slim GSM 3',
    14: 'SpyTrack2',
    29: 'Rail Patrol',
    33: 'Slim GSM 4',
    35: 'Smart2 Híbrido',
    36: 'Smart 2 GSM',
    45: 'SmartMid Híbrido',
    46: 'SmartMid GSM',
    54: 'Connect Smart GSM',
    55: 'Connect Smart Híbrido',
})


EVENT_FLAGS: Final[MappingProxyType[str, EventInfo]] = MappingProxyType({
    # Críticos
    'evt5': EventInfo('Botão de Pânico', _C, '🆘'),
    'evt44': EventInfo('Possível Jammer', _C, '📡'),
    'evt16': EventInfo('Bateria Violada', _C, '🔋'),
    'evt110': EventInfo('Risco Colisão Frontal', _C, '💥'),
    'evt105': EventInfo('Fadiga Motorista', _C, '😴'),
    'evt31': EventInfo('Pânico Escondido', _C, '🆘'),
    'evt95': EventInfo('Pânico / Violação Painel', _C, '🆘'),
    'evt42': EventInfo('Caixa Violada', _C, '📦'),
    'evt8': EventInfo('Desengate Carreta 1', _C, '⚠️'),
    'evt27': EventInfo('Desengate Carreta 2', _C, '⚠️'),
    # Altos
    'evt10': EventInfo('Trava Baú Destravada', _A, '🔓'),
    'evt14': EventInfo('Porta Baú Aberta', _A, '📦'),
    'evt17': EventInfo('Velocímetro Violado', _A, '⚙️'),
    'evt28': EventInfo('Violação de Painel', _A, '🛠️'),
    'evt109': EventInfo('Distração Motorista', _A, '📱'),
    'evt114': EventInfo('Cinto de Segurança', _A, '🪢'),
    'evt34': EventInfo('Velocidade Máx. GPS', _A, '🚨'),
    'evt72': EventInfo('Velocidade Excedida Tacógrafo', _A, '🚨'),
    'evt18': EventInfo('Cabo RS232 Violado', _A, '🔌'),
    'evt45': EventInfo('Biometria Desconectada', _A, '🖐️'),
    'evt46': EventInfo('Digital Sinistro s/ Perm.', _A, '🖐️'),
    'evt73': EventInfo('Caixa Travas Violada', _A, '🔒'),
    'evt80': EventInfo('Porta Baú 1 Violada', _A, '📦'),
    'evt81': EventInfo('Porta Baú 2 Violada', _A, '📦'),
    'evt82': EventInfo('Porta Baú 3 Violada', _A, '📦'),
    'evt83': EventInfo('Porta Baú 4 Violada', _A, '📦'),
    'evt93': EventInfo('Violação Elétr. 5ª Roda', _A, '⚡'),
    'evt94': EventInfo('Violação Pino 5ª Roda', _A, '🔩'),
    'evt96': EventInfo('Tombamento 5ª Roda', _A, '⚠️'),
    'evt98': EventInfo('Porta Baú Violada', _A, '📦'),
    'evt99': EventInfo('Perda de Vídeo', _A, '📹'),
    'evt100': EventInfo('Mov. Indevido Câmera', _A, '📹'),
    'evt101': EventInfo('Cobertura de Câmera', _A, '📹'),
    'evt104': EventInfo('Desligamento Ilegal', _A, '⛔'),
    'evt107': EventInfo('Uso de Celular', _A, '📱'),
    'evt108': EventInfo('Uso de Cigarro', _A, '🚬'),
    'evt112': EventInfo('Distância Insegura', _A, '↔️'),
    'evt113': EventInfo('Bocejo Motorista', _A, '🥱'),
    'evt115': EventInfo('Porta Motorista Não Autoriz.', _A, '🚪'),
    'evt116': EventInfo('Porta Carona Não Autoriz.', _A, '🚪'),
    'evt86': EventInfo('Movimento s/ GPS Violado', _A, '📡'),
    'evt89': EventInfo('Desconexão Sirene', _A, '🔊'),
    # Médios (the blocked-vehicle state is informational)
    'evt3': EventInfo('Veículo Bloqueado', _I, '🔒'),
    'evt1': EventInfo('Alerta de Cabine', _M, '🔔'),
    'evt2': EventInfo('Sirene Acionada', _M, '🔊'),
    'evt6': EventInfo('Botão Aviso Cabine', _M, '🔔'),
    'evt9': EventInfo('Trava 5ª Roda Pressionada', _M, '🔩'),
    'evt11': EventInfo('Pisca Alerta', _M, '⚡'),
    'evt12': EventInfo('Porta Carona Aberta', _M, '🚪'),
    'evt13': EventInfo('Porta Motorista Aberta', _M, '🚪'),
    'evt15': EventInfo('Trava Baú Pressionada', _M, '🔒'),
    'evt29': EventInfo('Teclado Desconectado', _M, '⌨️'),
    'evt35': EventInfo('RPM Máximo', _M, '🔧'),
    'evt43': EventInfo('Bateria Fraca', _M, '🪫'),
    'evt52': EventInfo('Saiu Raio de Manobra', _M, '📐'),
    'evt53': EventInfo('Tempo Manobra Excedido', _M, '⏱️'),
    'evt54': EventInfo('Tempo Parado Excedido', _M, '⏱️'),
    'evt74': EventInfo('Tempo Porta Baú 1 Aberta', _M, '⏱️'),
    'evt75': EventInfo('Tempo Porta Baú 2 Aberta', _M, '⏱️'),
    'evt76': EventInfo('Tempo Porta Baú 3 Aberta', _M, '⏱️'),
    'evt77': EventInfo('Tempo Porta Baú 4 Aberta', _M, '⏱️'),
    'evt78': EventInfo('Porta Cofre Aberta', _M, '🔐'),
    'evt79': EventInfo('Tempo Porta Cofre Aberta', _M, '⏱️'),
    'evt84': EventInfo('Abertura de Teclado', _M, '⌨️'),
    'evt85': EventInfo('Veículo na Chuva', _M, '🌧️'),
    'evt87': EventInfo('Tempo Porta Motorista', _M, '⏱️'),
    'evt88': EventInfo('Tempo Porta Carona', _M, '⏱️'),
    'evt90': EventInfo('Auto-Travamento Baú', _M, '🔒'),
    'evt102': EventInfo('Armazenamento Anormal', _M, '💾'),
    'evt103': EventInfo('Baixa Voltagem', _M, '🪫'),
    'evt106': EventInfo('Motorista Não Detectado', _M, '👤'),
    'evt111': EventInfo('Inicialização Anormal', _M, '🔄'),
    'evt119': EventInfo('Fleet Drive Conectado', _M, '🔗'),
    'evt120': EventInfo('Fleet Drive Desconectado', _M, '🔌'),
    # Informativos
    'evt19': EventInfo('Abertura Baú (EDN1)', _I, '📦'),
    'evt20': EventInfo('Solic. Abertura Baú (EDN2)', _I, '📦'),
    'evt21': EventInfo('Entrada Genérica (EDP1)', _I, '🔌'),
    'evt23': EventInfo('Violação Movimento (EVS1)', _I, '🚛'),
    'evt24': EventInfo('Trava/Destrava (SDP1)', _I, '🔐'),
    'evt25': EventInfo('Saída Genérica (SDP2)', _I, '🔌'),
    'evt30': EventInfo('Contra-Senha c/ Sinistro', _I, '🔑'),
    'evt32': EventInfo('Sensor Janela Motorista', _I, '🪟'),
    'evt33': EventInfo('Sensor Janela Carona', _I, '🪟'),
    'evt36': EventInfo('Tentativas Senha Excedidas', _I, '🔑'),
    'evt37': EventInfo('Falha Sensor Temp. 1', _I, '🌡️'),
    'evt38': EventInfo('Falha Sensor Temp. 2', _I, '🌡️'),
    'evt39': EventInfo('Falha Sensor Temp. 3', _I, '🌡️'),
    'evt40': EventInfo('Entrada Ponto Controle', _I, '📍'),
    'evt41': EventInfo('Saída Ponto Controle', _I, '📍'),
    'evt47': EventInfo('Digital Identificada', _I, '🖐️'),
    'evt48': EventInfo('Digital c/ Sinistro', _I, '🖐️'),
    'evt49': EventInfo('Digital s/ Permissão', _I, '🖐️'),
    'evt50': EventInfo('Digital Não Identificada', _I, '🖐️'),
    'evt51': EventInfo('Tempo Autent. Digital', _I, '⏱️'),
    'evt55': EventInfo('Manut. Emergencial (RP)', _I, '🛤️'),
    'evt56': EventInfo('Manut. Via (RP)', _I, '🛤️'),
    'evt57': EventInfo('Reconhec. Alerta (RP)', _I, '🛤️'),
    'evt58': EventInfo('Manut. Hardware (RP)', _I, '🛤️'),
    'evt59': EventInfo('Senha Identificada', _I, '🔑'),
    'evt60': EventInfo('Senha c/ Sinistro', _I, '🔑'),
    'evt61': EventInfo('Senha Não Identificada', _I, '🔑'),
    'evt62': EventInfo('Senha s/ Permissão', _I, '🔑'),
    'evt63': EventInfo('Senha Sinistro s/ Perm.', _I, '🔑'),
    'evt64': EventInfo('Tempo Autent. Senha', _I, '⏱️'),
    'evt65': EventInfo('Digital Manobrista', _I, '🖐️'),
    'evt67': EventInfo('Evento Telemetria', _I, '📊'),
    'evt91': EventInfo('Entrada Ponto Rotograma', _I, '🗺️'),
    'evt92': EventInfo('Saída Ponto Rotograma', _I, '🗺️'),
    'evt117': EventInfo('Vínculo de Carreta', _I, '🔗'),
    'evt118': EventInfo('Desvínculo de Carreta', _I, '🔌'),
    'evt121': EventInfo('Bateria Fleet Drive', _I, '🔋'),
})


MESSAGE_ORIGINS: Final[MappingProxyType[int, str]] = MappingProxyType({
    1: 'Satélite',
    2: 'GSM Híbrido',
    3: 'GSM City',
    4: 'GSM Light',
    5: 'GSM Smart',
    6: 'Satélite Smart',
    7: 'LoRa',
    8: 'LoRa P2P',
})


def equipment_name(code: int, raw_code: str | None = None) -> str:
    """
    Resolve an equipment code to its model name.

    Args:
        code: Parsed equipment code.
        raw_code: Code exactly as received, used in the placeholder label so
            an unparseable value stays visible.

    Returns:
        The model name, or ``'Tipo <code>'`` for codes not in the table.
    """
    name: str | None = EQUIPMENT_TYPES.get(code)
    if name is not None:
        return name
    return f'Tipo {raw_code if raw_code is not None else code}'


def event_info(code: str) -> EventInfo | None:
    """Look up an alert flag; None when the code is not (or no longer) known."""
    return EVENT_FLAGS.get(code)


def origin_name(code: int | None) -> str | None:
    """
    Resolve a message origin code.

    Returns:
        The channel name, ``'Origem <code>'`` for unknown codes, or None when
        the message carried no origin at all.
    """
    if code is None:
        return None
    return MESSAGE_ORIGINS.get(code, f'Origem {code}')
