#!/usr/bin/env python3
"""
Roulette Stats - Flask Web Application
API REST que expõe as estatísticas de números e grupos da sessão.
"""

import logging
import os
from pathlib import Path

from flask import Flask, jsonify, request
from flask_cors import CORS

from roulette_stats.advisor import SkipAdvisor, build_context
from roulette_stats.engine import SessionManager
from roulette_stats.groups import GroupKind
from roulette_stats.models import ConfigurationError, StatsConfig

# Configuração de logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_config() -> StatsConfig:
    """Carrega a configuração do arquivo indicado em ROULETTE_STATS_CONFIG (se houver)."""
    config_path = os.environ.get('ROULETTE_STATS_CONFIG')
    if not config_path:
        return StatsConfig()
    try:
        return StatsConfig.from_file(Path(config_path))
    except ConfigurationError as e:
        logger.error(f"Configuração inválida em {config_path}: {e}. Usando padrões.")
        return StatsConfig()


# Inicialização do Flask
app = Flask(__name__)
CORS(app)

# Gerenciador de sessões (singleton)
session_manager = SessionManager(load_config())
advisor = SkipAdvisor()


def _session():
    return session_manager.get_session(request.headers.get('X-Session-Id'))


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.route('/api/spin', methods=['POST'])
def api_spin():
    """
    Registra um novo número da roleta.

    Request Body:
        - number: int|str - Número que saiu (0-36)

    Response:
        - success: bool
        - outcome: dict
        - total_spins: int
        - hot_numbers / cold_numbers: list
        - alerts: list - Grupos em atraso
        - history: list
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'success': False, 'error': 'Dados não fornecidos'}), 400

        number = str(data.get('number', '')).strip()
        if not number:
            return jsonify({'success': False, 'error': 'Número não fornecido'}), 400

        result = _session().add_spin(number)
        if not result['success']:
            return jsonify(result), 400

        return jsonify(result)

    except Exception as e:
        logger.exception(f"Erro no processamento do giro: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/warmup', methods=['POST'])
def api_warmup():
    """
    Carrega resultados históricos.

    Request Body:
        - numbers: list - Números (mais recente primeiro)
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'success': False, 'error': 'Dados não fornecidos'}), 400

        numbers = data.get('numbers', [])
        if not isinstance(numbers, list):
            return jsonify({'success': False, 'error': 'Formato de números inválido'}), 400

        result = _session().add_spins(numbers)
        if not result['success']:
            return jsonify(result), 400

        return jsonify(result)

    except Exception as e:
        logger.exception(f"Erro no carregamento do histórico: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/undo', methods=['POST'])
def api_undo():
    """Remove o resultado mais recente."""
    try:
        result = _session().undo()
        if not result['success']:
            return jsonify(result), 400
        return jsonify(result)

    except Exception as e:
        logger.exception(f"Erro ao desfazer giro: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/stats', methods=['GET'])
def api_stats():
    """
    Retorna o snapshot completo: números, grupos e resumos quente/frio.

    Query:
        - kind: str - Filtra grupos por tipo (table, wheel, custom)
    """
    try:
        kind_name = request.args.get('kind')
        kind = None
        if kind_name:
            try:
                kind = GroupKind(kind_name)
            except ValueError:
                return jsonify({'success': False, 'error': f'Tipo de grupo inválido: {kind_name}'}), 400

        return jsonify(_session().get_stats(kind))

    except Exception as e:
        logger.exception(f"Erro ao obter estatísticas: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/stats/numbers', methods=['GET'])
def api_number_stats():
    """Estatísticas dos números 0-36."""
    try:
        snapshot = _session().snapshot()
        return jsonify({
            'success': True,
            'spins': snapshot.spins,
            'numbers': snapshot.to_dict()['numbers']
        })

    except Exception as e:
        logger.exception(f"Erro ao obter estatísticas de números: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/stats/groups', methods=['GET'])
def api_group_stats():
    """Estatísticas dos grupos, na ordem do catálogo."""
    try:
        snapshot = _session().snapshot()
        return jsonify({
            'success': True,
            'spins': snapshot.spins,
            'groups': [r.to_dict() for r in snapshot.groups]
        })

    except Exception as e:
        logger.exception(f"Erro ao obter estatísticas de grupos: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/catalog', methods=['GET'])
def api_catalog():
    """Catálogo de grupos (fixos + personalizados)."""
    return jsonify({'success': True, 'groups': _session().catalog()})


@app.route('/api/groups', methods=['POST'])
def api_add_group():
    """
    Adiciona um grupo personalizado.

    Request Body:
        - id: str
        - label|name: str
        - members|numbers: list
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'success': False, 'error': 'Dados não fornecidos'}), 400

        result = _session().add_group(data)
        if not result['success']:
            return jsonify(result), 400

        return jsonify(result), 201

    except Exception as e:
        logger.exception(f"Erro ao adicionar grupo: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/groups/<group_id>', methods=['DELETE'])
def api_remove_group(group_id):
    """Remove um grupo personalizado."""
    result = _session().remove_group(group_id)
    if not result['success']:
        return jsonify(result), 404
    return jsonify(result)


@app.route('/api/advice', methods=['POST'])
def api_advice():
    """
    Consulta o conselheiro com o snapshot atual.

    Request Body:
        - bankroll: float
        - table_min: float
        - table_max: float
    """
    try:
        data = request.get_json(silent=True) or {}
        session = _session()
        context = build_context(
            session.snapshot(),
            session.history_view(),
            bankroll=float(data.get('bankroll', 0)),
            table_min=float(data.get('table_min', 1)),
            table_max=float(data.get('table_max', 1000))
        )
        decision = advisor.decide(context)
        return jsonify({'success': True, 'decision': decision.to_dict()})

    except (TypeError, ValueError) as e:
        logger.error(f"Parâmetros de conselho inválidos: {e}")
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception(f"Erro ao consultar conselheiro: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/config', methods=['GET'])
def api_config():
    """Configuração ativa das estatísticas."""
    return jsonify({'success': True, 'config': session_manager.engine.config.to_dict()})


@app.route('/api/reset', methods=['POST'])
def api_reset():
    """Reseta a sessão completamente."""
    try:
        result = _session().reset()
        return jsonify(result)

    except Exception as e:
        logger.exception(f"Erro ao resetar: {e}")
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


@app.route('/api/health', methods=['GET'])
def api_health():
    """Health check endpoint."""
    return jsonify({'status': 'healthy', 'version': '1.0.0'})


# ============================================================================
# HANDLERS DE ERRO
# ============================================================================

@app.errorhandler(404)
def not_found(error):
    """Handler para erro 404."""
    return jsonify({'success': False, 'error': 'Recurso não encontrado'}), 404


@app.errorhandler(500)
def internal_error(error):
    """Handler para erro 500."""
    logger.exception("Erro interno do servidor")
    return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500


# ============================================================================
# PONTO DE ENTRADA
# ============================================================================

if __name__ == '__main__':
    print("\n" + "=" * 70)
    print("Roulette Stats - API v1.0")
    print("=" * 70)
    print("\nServidor iniciando...")
    print("Acesse: http://localhost:5000/api/health")
    print("\nPressione CTRL+C para encerrar")
    print("=" * 70 + "\n")

    app.run(debug=True, host='0.0.0.0', port=5000)
