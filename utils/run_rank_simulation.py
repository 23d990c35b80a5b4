import json
from time import time
from itertools import product
from datetime import datetime

# ensure project root on path for package import
import os
import sys
os.chdir(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.getcwd())

from tensorpreave.simulation import rank_recovery_trials

def main():
    # Simulation grid
    n_values = [100, 200]
    d_values = [(10, 10), (40, 40)]
    r_values = [(1, 1), (2, 2), (3, 2)]
    rank_methods = ["bs_cor", "eigen_ratio"]
    configs = list(product(n_values, d_values, r_values, rank_methods))
    seeds = range(10, 30)
    B = 50

    # Prepare logging
    os.makedirs("logs", exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = f"logs/simulation_log_{timestamp}.txt"
    log_file = open(log_path, 'w', buffering=1)  # line buffering

    total = len(configs)
    print(f"Starting rank recovery simulation ({total} settings, {len(seeds)} seeds each)...", file=log_file)
    print("Bootstrap replicates:", B, file=log_file)
    print('\n', file=log_file)
    start_time = time()

    results = []
    for idx, (n, d, r, rank_method) in enumerate(configs, 1):
        print(f"[{idx}/{total}] n={n}, d={d}, r={r}, rank_method={rank_method}", file=log_file)
        try:
            trials = rank_recovery_trials(
                seeds, K=len(d), n=n, d=d, r=r, re=(2, 2),
                B=B, rank_method=rank_method,
            )
            res = {
                'n': n,
                'd': d,
                'r': r,
                'rank_method': rank_method,
                'rank_accuracy': float(trials['rank_correct'].mean()),
                'mean_distance': float(trials['max_distance'].mean()),
                'ranks': [list(rank) for rank in trials['rank']],
                'status': 'success'
            }
            results.append(res)
            print(f"  OK: rank_accuracy={res['rank_accuracy']:.3f}, mean_distance={res['mean_distance']:.4f}",
                  file=log_file)
        except Exception as e:
            err = {
                'n': n,
                'd': d,
                'r': r,
                'rank_method': rank_method,
                'status': 'error',
                'error_message': str(e)
            }
            results.append(err)
            print(f"  ERROR: {e}", file=log_file)

    elapsed = time() - start_time
    print(f"Simulation finished in {elapsed:.2f}s", file=log_file)

    # Save JSON results
    json_path = f"logs/simulation_results_{timestamp}.json"
    with open(json_path, 'w') as jf:
        json.dump(results, jf, indent=2)
    print(f"Results saved to {json_path}", file=log_file)

    log_file.close()
    print(f"Log written to {log_path}")

if __name__ == "__main__":
    main()
